"""
GoalState model.
"""
from sqlmodel import SQLModel, Field
from datetime import date, datetime, timezone


class GoalStateDocument(SQLModel, table=True):
    """GoalState table - daily goal counter per user."""
    __tablename__ = "goal_state"

    user_id: str = Field(primary_key=True)
    target_goal: int
    current_progress: int = Field(default=0)
    last_progress_date: date
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
