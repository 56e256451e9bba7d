"""
Practice store: persistence adapter for card pools and daily goal state.

Both collections are stored as whole documents per user. Every save replaces
the previous document (last writer wins); there is no per-record patching and
no conflict resolution between devices.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from clozedrill.core.config import settings
from clozedrill.core.exceptions import PersistenceError
from clozedrill.models.card_pool import CardPoolDocument
from clozedrill.models.goal_state import GoalStateDocument
from clozedrill.schemas.card import Card
from clozedrill.schemas.goal import GoalState
from clozedrill.schemas.practice import PersistResult
from clozedrill.services.goal_service import validate_goal
from clozedrill.services.migration_service import migrate

logger = logging.getLogger(__name__)


class PracticeStore:
    """SQLModel-backed document store keyed by user id."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def load_card_pool(self, user_id: str) -> List[Card]:
        """
        Read a user's card pool.

        Records are migrated on read, so missing fields get defaults and
        out-of-range progress is clamped.

        Raises:
            PersistenceError: If the store cannot be read
        """
        try:
            with Session(self.engine) as session:
                document = session.get(CardPoolDocument, user_id)
                records = list(document.cards) if document else []
        except SQLAlchemyError as e:
            logger.error(f"Error loading card pool for user {user_id}: {str(e)}")
            raise PersistenceError(f"Failed to load card pool: {str(e)}") from e

        return migrate(records)

    def save_card_pool(self, user_id: str, cards: List[Card]) -> PersistResult:
        """Overwrite a user's card pool with ``cards``."""
        payload = [card.model_dump(mode="json") for card in cards]
        now = datetime.now(timezone.utc)

        with Session(self.engine) as session:
            try:
                document = session.get(CardPoolDocument, user_id)
                if document is None:
                    document = CardPoolDocument(user_id=user_id, cards=payload, last_updated=now)
                else:
                    document.cards = payload
                    document.last_updated = now
                session.add(document)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Error saving card pool for user {user_id}: {str(e)}")
                return PersistResult(ok=False, error=str(e))

        logger.debug(f"Saved {len(payload)} cards for user {user_id}")
        return PersistResult(ok=True)

    def load_goal_state(self, user_id: str) -> Optional[GoalState]:
        """
        Read a user's daily goal state, or None if the user has none yet.

        Raises:
            PersistenceError: If the store cannot be read
        """
        try:
            with Session(self.engine) as session:
                document = session.get(GoalStateDocument, user_id)
                if document is None:
                    return None
                return GoalState(
                    target_goal=validate_goal(document.target_goal, settings.default_target_goal),
                    current_progress=max(0, document.current_progress),
                    last_progress_date=document.last_progress_date,
                )
        except SQLAlchemyError as e:
            logger.error(f"Error loading goal state for user {user_id}: {str(e)}")
            raise PersistenceError(f"Failed to load goal state: {str(e)}") from e

    def save_goal_state(self, user_id: str, state: GoalState) -> PersistResult:
        """Overwrite a user's daily goal state."""
        now = datetime.now(timezone.utc)

        with Session(self.engine) as session:
            try:
                document = session.get(GoalStateDocument, user_id)
                if document is None:
                    document = GoalStateDocument(
                        user_id=user_id,
                        target_goal=state.target_goal,
                        current_progress=state.current_progress,
                        last_progress_date=state.last_progress_date,
                        last_updated=now,
                    )
                else:
                    document.target_goal = state.target_goal
                    document.current_progress = state.current_progress
                    document.last_progress_date = state.last_progress_date
                    document.last_updated = now
                session.add(document)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Error saving goal state for user {user_id}: {str(e)}")
                return PersistResult(ok=False, error=str(e))

        return PersistResult(ok=True)
