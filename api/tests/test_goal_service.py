from datetime import date, datetime, timezone

import pytest

from clozedrill.schemas.goal import GoalState
from clozedrill.services.goal_service import (
    check_rollover,
    is_cycle_complete,
    local_today,
    new_goal_state,
    progress_percentage,
    record_correct_answer,
    reset_progress,
    set_goal,
    validate_goal,
)


def test_rollover_resets_progress_on_a_new_day():
    state = GoalState(target_goal=10, current_progress=7, last_progress_date=date(2024, 1, 1))

    rolled = check_rollover(state, date(2024, 1, 2))

    assert rolled.current_progress == 0
    assert rolled.last_progress_date == date(2024, 1, 2)
    assert rolled.target_goal == 10


def test_rollover_is_a_no_op_on_the_same_day():
    state = GoalState(target_goal=10, current_progress=7, last_progress_date=date(2024, 1, 1))

    assert check_rollover(state, date(2024, 1, 1)) is state


def test_first_correct_answer_of_a_new_day_counts_as_one():
    state = GoalState(target_goal=10, current_progress=7, last_progress_date=date(2024, 1, 1))
    now = datetime(2024, 1, 2, 8, 0, tzinfo=timezone.utc)

    updated = record_correct_answer(state, now)

    assert updated.current_progress == 1
    assert updated.last_progress_date == date(2024, 1, 2)


def test_correct_answers_accumulate_within_a_day():
    state = new_goal_state(date(2024, 1, 1), 3)
    now = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

    for _ in range(3):
        state = record_correct_answer(state, now)

    assert state.current_progress == 3
    assert is_cycle_complete(state)


def test_local_today_uses_the_configured_zone():
    # 23:30 UTC on Jan 1 is already Jan 2 in Tokyo
    now = datetime(2024, 1, 1, 23, 30, tzinfo=timezone.utc)

    assert local_today(now, "UTC") == date(2024, 1, 1)
    assert local_today(now, "Asia/Tokyo") == date(2024, 1, 2)


def test_local_today_takes_naive_datetimes_as_local():
    assert local_today(datetime(2024, 3, 5, 23, 59), "Asia/Tokyo") == date(2024, 3, 5)


@pytest.mark.parametrize("value,expected", [
    (20, 20),
    ("15", 15),
    (12.0, 12),
    (0, 10),
    (-3, 10),
    (None, 10),
    ("abc", 10),
    (2.5, 10),
    (True, 10),
    (float("inf"), 10),
])
def test_validate_goal_falls_back_to_default(value, expected):
    assert validate_goal(value, 10) == expected


def test_set_goal_restarts_todays_count():
    state = GoalState(target_goal=10, current_progress=7, last_progress_date=date(2024, 1, 1))

    updated = set_goal(state, 20, 10)

    assert updated.target_goal == 20
    assert updated.current_progress == 0
    assert updated.last_progress_date == date(2024, 1, 1)


def test_set_goal_with_invalid_value_uses_default():
    state = new_goal_state(date(2024, 1, 1), 30)

    assert set_goal(state, "lots", 10).target_goal == 10


def test_reset_progress():
    state = GoalState(target_goal=5, current_progress=5, last_progress_date=date(2024, 1, 1))

    reset = reset_progress(state, date(2024, 1, 3))

    assert reset.current_progress == 0
    assert reset.last_progress_date == date(2024, 1, 3)
    assert not is_cycle_complete(reset)


def test_progress_percentage():
    state = GoalState(target_goal=3, current_progress=2, last_progress_date=date(2024, 1, 1))

    assert progress_percentage(state) == 67
