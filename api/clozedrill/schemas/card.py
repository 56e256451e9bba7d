"""
Card schemas.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime

MIN_PROGRESS = 0
MAX_PROGRESS = 5


class Card(BaseModel):
    """One fact to be learned, with its progress in the current cycle."""
    id: str = Field(..., description="Stable identifier, unique within a pool")
    prompt: str = Field(..., description="Sentence with the answer blanked out")
    answer: str = Field(..., description="Word or phrase the user must type")
    translation: str = Field("", description="Meaning of the answer word")
    sentence_translation: str = Field("", description="Translation of the whole sentence")
    source_sentence: Optional[str] = Field(None, description="Unblanked sentence, kept for export")
    session_progress: int = Field(0, description="Progress in the current cycle (0-5)")
    mastery_level: int = Field(0, description="Set to 5 when the card is mastered")
    session_completed: bool = Field(False, description="True iff session_progress == 5")
    last_practiced: Optional[datetime] = Field(None, description="Time of the last graded answer")
    scheduling_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Long-horizon scheduling state, stored but not read by selection"
    )

    class Config:
        extra = "allow"
        json_schema_extra = {
            "example": {
                "id": "friends_0",
                "prompt": "___ are very important in life.",
                "answer": "friends",
                "translation": "arkadaşlar",
                "sentence_translation": "Arkadaşlar hayatta çok önemlidir.",
                "session_progress": 2,
                "mastery_level": 0,
                "session_completed": False,
                "last_practiced": "2024-01-01T10:00:30Z",
                "scheduling_metadata": {"version": 1, "state": "new"}
            }
        }

    @field_validator("session_progress")
    @classmethod
    def clamp_session_progress(cls, v: int) -> int:
        # Hand-edited or corrupted data is clamped, never rejected
        return max(MIN_PROGRESS, min(MAX_PROGRESS, v))

    @property
    def is_active(self) -> bool:
        return self.session_progress < MAX_PROGRESS


class CardListResponse(BaseModel):
    """Response listing a user's card pool."""
    cards: List[Card]
    total: int
    active: int
    untouched: int
    mastered: int
