"""
Daily goal schemas.
"""
from pydantic import BaseModel, Field
from typing import Any
from datetime import date


class GoalState(BaseModel):
    """Day-scoped answer counter, independent of individual cards."""
    target_goal: int = Field(..., description="Correct answers needed to finish the day")
    current_progress: int = Field(0, description="Correct answers counted today")
    last_progress_date: date = Field(..., description="Local calendar day of the last counted answer")

    class Config:
        json_schema_extra = {
            "example": {
                "target_goal": 10,
                "current_progress": 7,
                "last_progress_date": "2024-01-01"
            }
        }


class GoalUpdateRequest(BaseModel):
    """Request to change the daily goal."""
    target_goal: Any = Field(..., description="New goal; invalid values fall back to the default")
