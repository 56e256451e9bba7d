import random
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from clozedrill.core.database import init_db
from clozedrill.schemas.card import Card
from clozedrill.services.store_service import PracticeStore


class FixedClock:
    """Clock returning a settable time; advance() moves it forward."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class ScriptedRng:
    """Random source whose draws follow a list of card ids."""

    def __init__(self, script=None):
        self.script = list(script or [])
        self.calls = 0

    def choices(self, population, weights=None, k=1):
        self.calls += 1
        if self.script:
            wanted = self.script.pop(0)
            for card in population:
                if card.id == wanted:
                    return [card]
        return [population[0]]


def make_card(card_id, progress=0, answer=None, **kwargs):
    answer = answer or card_id
    return Card(
        id=card_id,
        prompt=kwargs.pop('prompt', "The ___ is here."),
        answer=answer,
        session_progress=progress,
        mastery_level=5 if progress == 5 else 0,
        session_completed=progress == 5,
        **kwargs
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return PracticeStore(engine)


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def rng():
    return random.Random(1234)
