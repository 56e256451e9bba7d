"""
CardPool model.
"""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import List
from datetime import datetime, timezone


class CardPoolDocument(SQLModel, table=True):
    """CardPool table - one whole-pool snapshot per user, overwritten on every save."""
    __tablename__ = "card_pool"

    user_id: str = Field(primary_key=True)
    cards: List[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
