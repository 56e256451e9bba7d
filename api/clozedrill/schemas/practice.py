"""
Practice session schemas.
"""
from pydantic import BaseModel, Field
from typing import Optional

from clozedrill.models.enums import AnswerGrade
from clozedrill.schemas.card import Card
from clozedrill.schemas.goal import GoalState


class PersistResult(BaseModel):
    """Result of a store write; failures are values, not exceptions."""
    ok: bool = Field(..., description="Whether the write reached the store")
    error: Optional[str] = Field(None, description="Store error message when ok is False")


class AnswerRequest(BaseModel):
    """Typed answer for the current card."""
    answer: str = Field(..., description="Text typed by the user")

    class Config:
        json_schema_extra = {
            "example": {"answer": "friends"}
        }


class OutcomeRequest(BaseModel):
    """Already graded outcome for the current card."""
    correct: bool = Field(..., description="True for an exact match, False for a far miss")


class PracticeStats(BaseModel):
    """Counts for the current cycle."""
    total: int
    active: int = Field(..., description="Cards still eligible for selection")
    untouched: int = Field(..., description="Active cards with no progress yet")
    in_progress: int = Field(..., description="Active cards with some progress")
    mastered: int
    current_progress: int
    target_goal: int
    progress_percentage: int
    goal_reached: bool
    all_mastered: bool
    cycle_complete: bool
    store_backed: bool = Field(True, description="False when the store could not be read; changes are not saved")


class AnswerOutcome(BaseModel):
    """What happened on one answer event."""
    grade: Optional[AnswerGrade] = Field(None, description="Grade when the answer was typed text")
    retry: bool = Field(False, description="Near miss: same card again, nothing changed")
    card: Card = Field(..., description="The answered card after the transition")
    correct_answer: Optional[str] = Field(None, description="Revealed after a wrong answer")
    goal: GoalState
    cycle_complete: bool
    all_mastered: bool
    next_card: Optional[Card] = Field(None, description="Next card, None when the cycle is complete")
    persist: Optional[PersistResult] = Field(None, description="None while the write is deferred")


class PracticeStateResponse(BaseModel):
    """Current session state for a user."""
    user_id: str
    current_card: Optional[Card]
    goal: GoalState
    stats: PracticeStats
    last_persist_error: Optional[str] = None


class ImportResponse(BaseModel):
    """Response from a CSV import."""
    message: str
    total_rows: int
    imported: int
    failed: int
    word_matched: int
    persist: PersistResult
