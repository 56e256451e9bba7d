"""
Models package.
"""
from clozedrill.models.enums import CardState, AnswerGrade
from clozedrill.models.card_pool import CardPoolDocument
from clozedrill.models.goal_state import GoalStateDocument

__all__ = [
    'CardState',
    'AnswerGrade',
    'CardPoolDocument',
    'GoalStateDocument',
]
