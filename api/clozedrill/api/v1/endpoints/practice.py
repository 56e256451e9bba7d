"""
Practice session endpoints.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, status
import logging

from clozedrill.core.registry import get_registry
from clozedrill.schemas.goal import GoalUpdateRequest
from clozedrill.schemas.practice import (
    AnswerOutcome,
    AnswerRequest,
    OutcomeRequest,
    PracticeStateResponse,
)
from clozedrill.services.practice_service import PracticeCoordinator, SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/practice", tags=["practice"])


def _state(coordinator: PracticeCoordinator) -> PracticeStateResponse:
    return PracticeStateResponse(
        user_id=coordinator.user_id,
        current_card=coordinator.current_card,
        goal=coordinator.goal_state,
        stats=coordinator.stats(),
        last_persist_error=coordinator.last_persist_error,
    )


@router.get("/{user_id}", response_model=PracticeStateResponse)
async def get_practice_state(
    user_id: str,
    registry: SessionRegistry = Depends(get_registry)
):
    """
    Get the current card, daily goal and cycle statistics for a user.

    The first call for a user loads the pool from the store (seeding the
    default cards when the user has none).
    """
    return _state(registry.get(user_id))


@router.post("/{user_id}/answer", response_model=AnswerOutcome, status_code=status.HTTP_200_OK)
async def submit_answer(
    user_id: str,
    request: AnswerRequest,
    background_tasks: BackgroundTasks,
    registry: SessionRegistry = Depends(get_registry)
):
    """
    Grade a typed answer for the current card.

    Exact matches count as correct, close answers are free retries (the
    response has ``retry`` set and the same card), anything else is wrong.
    The store write runs after the response is sent.
    """
    coordinator = registry.get(user_id)
    outcome = coordinator.submit_answer(request.answer, defer_persist=True)

    if not outcome.retry:
        background_tasks.add_task(coordinator.flush)

    grade = outcome.grade.value if outcome.grade else None
    logger.info(
        f"User {user_id} answered card {outcome.card.id}: {grade} "
        f"(progress {outcome.card.session_progress}, goal {outcome.goal.current_progress}/{outcome.goal.target_goal})"
    )
    return outcome


@router.post("/{user_id}/outcome", response_model=AnswerOutcome, status_code=status.HTTP_200_OK)
async def record_outcome(
    user_id: str,
    request: OutcomeRequest,
    background_tasks: BackgroundTasks,
    registry: SessionRegistry = Depends(get_registry)
):
    """Record an outcome graded by the client (exact match or far miss)."""
    coordinator = registry.get(user_id)
    outcome = coordinator.answer(request.correct, defer_persist=True)
    background_tasks.add_task(coordinator.flush)
    return outcome


@router.post("/{user_id}/reset", response_model=PracticeStateResponse)
async def reset_cycle(
    user_id: str,
    registry: SessionRegistry = Depends(get_registry)
):
    """Start a new cycle: clear all card progress and today's goal count."""
    coordinator = registry.get(user_id)
    coordinator.reset()
    return _state(coordinator)


@router.put("/{user_id}/goal", response_model=PracticeStateResponse)
async def update_goal(
    user_id: str,
    request: GoalUpdateRequest,
    registry: SessionRegistry = Depends(get_registry)
):
    """
    Change the daily goal.

    Invalid values fall back to the configured default. Changing the goal
    restarts today's count.
    """
    coordinator = registry.get(user_id)
    coordinator.set_goal(request.target_goal)
    return _state(coordinator)
