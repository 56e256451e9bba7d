from datetime import date

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from clozedrill.core.exceptions import PersistenceError
from clozedrill.models.card_pool import CardPoolDocument
from clozedrill.schemas.goal import GoalState
from clozedrill.services.store_service import PracticeStore

from conftest import make_card


@pytest.fixture
def broken_store():
    # No tables created, so every statement fails
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    yield PracticeStore(engine)
    engine.dispose()


def test_unknown_user_has_empty_pool_and_no_goal(store):
    assert store.load_card_pool('nobody') == []
    assert store.load_goal_state('nobody') is None


def test_card_pool_round_trip(store):
    cards = [make_card('a', 2, translation='A'), make_card('b', 5)]

    assert store.save_card_pool('u1', cards).ok

    loaded = store.load_card_pool('u1')
    assert [c.model_dump() for c in loaded] == [c.model_dump() for c in cards]


def test_save_replaces_whole_pool(store):
    store.save_card_pool('u1', [make_card('a'), make_card('b')])
    store.save_card_pool('u1', [make_card('c')])

    assert [c.id for c in store.load_card_pool('u1')] == ['c']


def test_pools_are_per_user(store):
    store.save_card_pool('u1', [make_card('a')])
    store.save_card_pool('u2', [make_card('b')])

    assert [c.id for c in store.load_card_pool('u1')] == ['a']


def test_goal_state_round_trip(store):
    state = GoalState(target_goal=8, current_progress=3, last_progress_date=date(2024, 1, 1))

    assert store.save_goal_state('u1', state).ok
    assert store.load_goal_state('u1') == state

    store.save_goal_state('u1', state.model_copy(update={'current_progress': 4}))
    assert store.load_goal_state('u1').current_progress == 4


def test_load_failure_raises(broken_store):
    with pytest.raises(PersistenceError):
        broken_store.load_card_pool('u1')
    with pytest.raises(PersistenceError):
        broken_store.load_goal_state('u1')


def test_save_failure_is_reported_not_raised(broken_store):
    result = broken_store.save_card_pool('u1', [make_card('a')])

    assert result.ok is False
    assert result.error

    goal = GoalState(target_goal=5, last_progress_date=date(2024, 1, 1))
    assert broken_store.save_goal_state('u1', goal).ok is False


def test_invalid_stored_goal_falls_back_to_default(store):
    store.save_goal_state('u1', GoalState(target_goal=0, current_progress=2, last_progress_date=date(2024, 1, 1)))

    loaded = store.load_goal_state('u1')

    assert loaded.target_goal == 10
    assert loaded.current_progress == 2


def test_infinite_progress_in_stored_pool_loads_clamped(engine, store):
    with Session(engine) as session:
        session.add(CardPoolDocument(user_id='u1', cards=[
            {'id': 'a', 'prompt': 'The ___.', 'answer': 'a', 'session_progress': float('inf')},
        ]))
        session.commit()

    assert store.load_card_pool('u1')[0].session_progress == 5
