"""
Selection service: picks the next card to practice from a pool.

Cards still short of mastery are drawn by weighted random sampling so that
untouched and struggling words come up more often than nearly-mastered ones.
The function is a pure query; it never changes the pool.
"""
import logging
import random
from typing import List, Optional, Sequence

from clozedrill.schemas.card import Card, MAX_PROGRESS

logger = logging.getLogger(__name__)


# Weight of a card is WEIGHT_CEILING - session_progress:
# progress 0 -> 6, progress 4 -> 2, one step from mastery never drops below 1
WEIGHT_CEILING = MAX_PROGRESS + 1


def card_weight(card: Card) -> int:
    """Selection weight of an active card."""
    return WEIGHT_CEILING - card.session_progress


def get_active_cards(pool: Sequence[Card]) -> List[Card]:
    """Cards still eligible for selection in this cycle."""
    return [card for card in pool if card.is_active]


def get_mastered_cards(pool: Sequence[Card]) -> List[Card]:
    """Cards retired from rotation until the pool is reset."""
    return [card for card in pool if card.session_progress >= MAX_PROGRESS]


def _draw(candidates: List[Card], weights: List[int], rng) -> Card:
    return rng.choices(candidates, weights=weights, k=1)[0]


def select_next(
    pool: Sequence[Card],
    previous_id: Optional[str] = None,
    rng: Optional[random.Random] = None
) -> Optional[Card]:
    """
    Choose the next card to present.

    Args:
        pool: All cards of the current cycle
        previous_id: ID of the card shown last, if any
        rng: Random source exposing ``choices`` (defaults to the module-level one)

    Returns:
        The selected card, or None when no active card is left (cycle complete)
    """
    if rng is None:
        rng = random

    candidates = get_active_cards(pool)
    if not candidates:
        return None

    weights = [card_weight(card) for card in candidates]
    selected = _draw(candidates, weights, rng)

    if len(candidates) > 1 and previous_id is not None and selected.id == previous_id:
        # One redraw only; a second hit on the same card is accepted
        selected = _draw(candidates, weights, rng)
        logger.debug(f"Redrew to avoid repeating {previous_id}, got {selected.id}")

    return selected
