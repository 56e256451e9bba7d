"""
Answer grading service.
"""
import logging
from typing import Optional

from clozedrill.core.config import settings
from clozedrill.models.enums import AnswerGrade

logger = logging.getLogger(__name__)


def normalize_answer(text: str) -> str:
    return (text or "").strip().lower()


def levenshtein_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein distance between two strings."""
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def similarity(user_answer: str, correct_answer: str) -> float:
    """1.0 for identical strings, 0.0 for completely different ones."""
    max_len = max(len(user_answer), len(correct_answer))
    if max_len == 0:
        return 1.0
    return 1 - levenshtein_distance(user_answer, correct_answer) / max_len


def grade_answer(user_input: str, correct_answer: str, threshold: Optional[float] = None) -> AnswerGrade:
    """
    Classify a typed answer.

    Exact matches ignore case and surrounding whitespace. A wrong answer whose
    similarity is above ``threshold`` is a near miss: the user gets another
    try and the card's progress does not move.

    Args:
        user_input: Text typed by the user
        correct_answer: The card's answer
        threshold: Near-miss similarity cut-off (defaults to settings)

    Returns:
        AnswerGrade
    """
    if threshold is None:
        threshold = settings.near_miss_threshold

    user_answer = normalize_answer(user_input)
    expected = normalize_answer(correct_answer)

    if user_answer == expected:
        return AnswerGrade.CORRECT

    score = similarity(user_answer, expected)
    if score > threshold:
        logger.debug(f"Near miss {user_answer!r} for {expected!r} (similarity {score:.2f})")
        return AnswerGrade.NEAR_MISS

    return AnswerGrade.WRONG
