"""
Progress service: per-card mastery transitions.

Progress moves one step per graded answer, like a Leitner box with six bins:
a correct answer moves the card up, a wrong one moves it down, and bin 5 is
mastered for the rest of the cycle.
"""
import logging
from datetime import datetime

from clozedrill.models.enums import CardState
from clozedrill.schemas.card import Card, MIN_PROGRESS, MAX_PROGRESS

logger = logging.getLogger(__name__)


def next_progress(current_progress: int, correct: bool) -> int:
    """
    Compute the next session progress value.

    Args:
        current_progress: Current progress (clamped into 0-5 first)
        correct: Whether the answer was an exact match

    Returns:
        New progress value
    """
    current_progress = max(MIN_PROGRESS, min(MAX_PROGRESS, current_progress))

    if correct:
        return min(MAX_PROGRESS, current_progress + 1)
    return max(MIN_PROGRESS, current_progress - 1)


def apply_outcome(card: Card, correct: bool, now: datetime) -> Card:
    """
    Return the card's next state after a graded answer.

    Near misses are retries and must not be passed here. The input card is
    left untouched; the caller swaps the returned value into the pool.
    """
    new_progress = next_progress(card.session_progress, correct)
    mastered = new_progress == MAX_PROGRESS

    updated = card.model_copy(update={
        "session_progress": new_progress,
        "mastery_level": MAX_PROGRESS if mastered else card.mastery_level,
        "session_completed": mastered,
        "last_practiced": now,
    })

    if mastered and not card.session_completed:
        logger.info(f"Card {card.id} mastered (progress reached {MAX_PROGRESS})")

    return updated


def reset_card(card: Card) -> Card:
    """Put a card back to the start of a new cycle."""
    return card.model_copy(update={
        "session_progress": MIN_PROGRESS,
        "mastery_level": 0,
        "session_completed": False,
    })


def card_state(card: Card) -> CardState:
    if card.session_progress >= MAX_PROGRESS:
        return CardState.MASTERED
    if card.session_progress <= MIN_PROGRESS:
        return CardState.UNTOUCHED
    return CardState.ACTIVE
