"""
Daily goal service.

Tracks how many correct answers the user gave today against a target. The
counter rolls over lazily: every read or write first checks whether the
calendar day changed since the last counted answer.
"""
import logging
from datetime import date, datetime, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

from clozedrill.schemas.goal import GoalState

logger = logging.getLogger(__name__)


def local_today(now: datetime, tz_name: Optional[str] = None) -> date:
    """
    Calendar day of ``now`` in the user's time zone.

    Naive datetimes are taken as already local.
    """
    if now.tzinfo is None:
        return now.date()
    if not tz_name or tz_name.upper() == "UTC":
        return now.astimezone(timezone.utc).date()
    return now.astimezone(ZoneInfo(tz_name)).date()


def new_goal_state(today: date, target_goal: int) -> GoalState:
    return GoalState(target_goal=target_goal, current_progress=0, last_progress_date=today)


def check_rollover(state: GoalState, today: date) -> GoalState:
    """Zero the counter if the day advanced past the last counted answer."""
    if state.last_progress_date != today:
        logger.info(
            f"Daily goal rollover: {state.last_progress_date} -> {today} "
            f"(progress {state.current_progress} reset)"
        )
        return state.model_copy(update={"current_progress": 0, "last_progress_date": today})
    return state


def record_correct_answer(state: GoalState, now: datetime, tz_name: Optional[str] = None) -> GoalState:
    """Count one correct answer towards today's goal."""
    today = local_today(now, tz_name)
    state = check_rollover(state, today)
    return state.model_copy(update={
        "current_progress": state.current_progress + 1,
        "last_progress_date": today,
    })


def validate_goal(goal: Any, default_goal: int) -> int:
    """
    Coerce a user supplied goal to a positive integer.

    Anything that is not a positive integer (or a string holding one) falls
    back to ``default_goal``.
    """
    if isinstance(goal, bool):
        return default_goal
    try:
        value = int(goal)
    except (TypeError, ValueError, OverflowError):
        logger.warning(f"Invalid goal value {goal!r}, using default {default_goal}")
        return default_goal
    if isinstance(goal, float) and not goal.is_integer():
        logger.warning(f"Invalid goal value {goal!r}, using default {default_goal}")
        return default_goal
    if value <= 0:
        logger.warning(f"Non-positive goal value {goal!r}, using default {default_goal}")
        return default_goal
    return value


def set_goal(state: GoalState, goal: Any, default_goal: int) -> GoalState:
    """Change the target; this restarts the day's count."""
    return state.model_copy(update={
        "target_goal": validate_goal(goal, default_goal),
        "current_progress": 0,
    })


def reset_progress(state: GoalState, today: date) -> GoalState:
    return state.model_copy(update={"current_progress": 0, "last_progress_date": today})


def is_cycle_complete(state: GoalState) -> bool:
    return state.current_progress >= state.target_goal


def progress_percentage(state: GoalState) -> int:
    """Rounded percent of today's goal reached."""
    if state.target_goal <= 0:
        return 0
    return round(state.current_progress / state.target_goal * 100)
