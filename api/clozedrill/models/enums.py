"""
Model enums.
"""
from enum import Enum


class CardState(str, Enum):
    """Progress state of a card within the current learning cycle."""
    UNTOUCHED = "untouched"
    ACTIVE = "active"
    MASTERED = "mastered"


class AnswerGrade(str, Enum):
    """Classification of a typed answer."""
    CORRECT = "correct"
    NEAR_MISS = "near_miss"  # Free retry, progress does not move
    WRONG = "wrong"
