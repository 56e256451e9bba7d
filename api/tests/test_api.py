import csv
import io

import pytest
from fastapi.testclient import TestClient

from clozedrill.core.registry import get_registry
from clozedrill.main import app
from clozedrill.services.practice_service import SessionRegistry

from conftest import ScriptedRng

PREFIX = "/api/v1"

CSV_CONTENT = (
    "word,sentence,word_mean,sentence_translation\n"
    "friends,Friends are very important in life,Arkadaşlar,Arkadaşlar hayatta çok önemlidir.\n"
    "exam,She is studying for her exam,Sınav,O sınavı için çalışıyor.\n"
    ",Missing word here,x,y\n"
)


@pytest.fixture
def registry(store, clock, rng):
    return SessionRegistry(store, rng=rng, clock=clock)


@pytest.fixture
def client(registry):
    app.dependency_overrides[get_registry] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/health").json() == {"status": "healthy"}


def test_new_user_gets_seed_pool(client):
    response = client.get(f"{PREFIX}/practice/alice")

    assert response.status_code == 200
    data = response.json()
    assert data["user_id"] == "alice"
    assert data["current_card"]["prompt"].count("___") == 1
    assert data["stats"]["total"] == 3
    assert data["goal"]["target_goal"] == 10


def test_correct_typed_answer_is_persisted(client, store):
    card = client.get(f"{PREFIX}/practice/alice").json()["current_card"]

    response = client.post(f"{PREFIX}/practice/alice/answer", json={"answer": card["answer"].upper()})

    assert response.status_code == 200
    data = response.json()
    assert data["grade"] == "correct"
    assert data["card"]["session_progress"] == 1
    assert data["goal"]["current_progress"] == 1
    # Write-behind runs as a background task after the response
    stored = {c.id: c for c in store.load_card_pool("alice")}
    assert stored[card["id"]].session_progress == 1
    assert store.load_goal_state("alice").current_progress == 1


def test_near_miss_returns_retry(client):
    card = client.get(f"{PREFIX}/practice/alice").json()["current_card"]
    typo = card["answer"][:-1]

    data = client.post(f"{PREFIX}/practice/alice/answer", json={"answer": typo}).json()

    assert data["grade"] == "near_miss"
    assert data["retry"] is True
    assert data["next_card"]["id"] == card["id"]
    assert data["card"]["session_progress"] == 0


def test_wrong_outcome_reveals_answer(client):
    card = client.get(f"{PREFIX}/practice/alice").json()["current_card"]

    data = client.post(f"{PREFIX}/practice/alice/outcome", json={"correct": False}).json()

    assert data["grade"] == "wrong"
    assert data["correct_answer"] == card["answer"]


def test_answering_a_finished_cycle_is_a_conflict(client):
    client.put(f"{PREFIX}/practice/alice/goal", json={"target_goal": 1})
    assert client.post(f"{PREFIX}/practice/alice/outcome", json={"correct": True}).json()["cycle_complete"]

    response = client.post(f"{PREFIX}/practice/alice/outcome", json={"correct": True})

    assert response.status_code == 409
    assert response.json()["type"] == "ConflictError"


def test_reset_reopens_the_cycle(client):
    client.put(f"{PREFIX}/practice/alice/goal", json={"target_goal": 1})
    client.post(f"{PREFIX}/practice/alice/outcome", json={"correct": True})

    data = client.post(f"{PREFIX}/practice/alice/reset").json()

    assert data["stats"]["cycle_complete"] is False
    assert data["goal"]["current_progress"] == 0
    assert data["current_card"] is not None


def test_invalid_goal_falls_back_to_default(client):
    data = client.put(f"{PREFIX}/practice/alice/goal", json={"target_goal": -5}).json()

    assert data["goal"]["target_goal"] == 10


class TestCards:
    def test_import_csv(self, client):
        response = client.post(
            f"{PREFIX}/cards/bob/import",
            files={"file": ("cards.csv", CSV_CONTENT.encode("utf-8"), "text/csv")},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["imported"] == 2
        assert data["failed"] == 1
        assert data["persist"]["ok"] is True

        cards = client.get(f"{PREFIX}/cards/bob").json()
        assert [c["answer"] for c in cards["cards"]] == ["friends", "exam"]
        assert cards["active"] == 2
        assert cards["untouched"] == 2

    def test_import_without_valid_rows_is_rejected(self, client):
        content = "word,sentence,word_mean,sentence_translation\n,no word,x,y\n"

        response = client.post(
            f"{PREFIX}/cards/bob/import",
            files={"file": ("cards.csv", content.encode("utf-8"), "text/csv")},
        )

        assert response.status_code == 400

    def test_export_csv(self, client, registry):
        client.post(
            f"{PREFIX}/cards/bob/import",
            files={"file": ("cards.csv", CSV_CONTENT.encode("utf-8"), "text/csv")},
        )

        response = client.get(f"{PREFIX}/cards/bob/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert rows[0]["word"] == "friends"
        assert rows[0]["sentence"] == "Friends are very important in life."
        assert rows[0]["tags"] == ""

    def test_export_mastered_only(self, client, registry):
        registry.get("bob").rng = ScriptedRng(["friends_0"] * 20)
        client.post(
            f"{PREFIX}/cards/bob/import",
            files={"file": ("cards.csv", CSV_CONTENT.encode("utf-8"), "text/csv")},
        )
        for _ in range(5):
            client.post(f"{PREFIX}/practice/bob/outcome", json={"correct": True})

        response = client.get(f"{PREFIX}/cards/bob/export", params={"mastered_only": True})

        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert [row["word"] for row in rows] == ["friends"]
        assert rows[0]["tags"] == "mastered"
