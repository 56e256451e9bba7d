from clozedrill.models.enums import AnswerGrade
from clozedrill.services.answer_service import (
    grade_answer,
    levenshtein_distance,
    normalize_answer,
    similarity,
)


def test_levenshtein_distance():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("same", "same") == 0


def test_similarity_bounds():
    assert similarity("", "") == 1.0
    assert similarity("abc", "xyz") == 0.0
    assert similarity("friend", "friends") == 1 - 1 / 7


def test_normalize_answer():
    assert normalize_answer("  Friends ") == "friends"
    assert normalize_answer(None) == ""


def test_exact_match_ignores_case_and_whitespace():
    assert grade_answer(" FRIENDS ", "friends") == AnswerGrade.CORRECT


def test_typo_is_a_near_miss():
    assert grade_answer("freinds", "friends", threshold=0.3) == AnswerGrade.NEAR_MISS


def test_unrelated_answer_is_wrong():
    assert grade_answer("table", "groceries", threshold=0.3) == AnswerGrade.WRONG
    assert grade_answer("", "exam", threshold=0.3) == AnswerGrade.WRONG


def test_threshold_decides_near_miss():
    # "abc" vs "abd": similarity 2/3
    assert grade_answer("abd", "abc", threshold=0.7) == AnswerGrade.WRONG
    assert grade_answer("abd", "abc", threshold=0.5) == AnswerGrade.NEAR_MISS
