import pytest
from fastapi.testclient import TestClient

from workplace_dna import streaming
from workplace_dna.database import Base, engine, init_db
from workplace_dna.main import app

SCORES = {"collaboration": 8.0, "formality": 3.0, "tech": 6.0, "wellness": 7.0}


def setup_function():
    init_db()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


@pytest.fixture
def published(monkeypatch):
    events = []

    def recorder(name):
        def _record(manager, session_code, *args):
            events.append((name, session_code, args))

        return _record

    for name in ("attendee_joined", "response_received", "attendee_completed", "analytics", "attendee_deleted"):
        monkeypatch.setattr(streaming, name, recorder(name))
    return events


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def _join(client, code="QUIZ01", name="Ada"):
    response = client.post(f"/api/sessions/{code}/participants", json={"name": name, "generation": "Gen X"})
    assert response.status_code == 201
    return response.json()


def test_join_broadcasts_attendee_joined(client, published):
    body = _join(client)
    assert body["session_code"] == "QUIZ01"
    assert body["completed"] is False
    assert published[0][0] == "attendee_joined"
    assert published[0][1] == "QUIZ01"
    assert published[0][2][0]["id"] == body["participant_id"]


def test_join_rejects_invalid_email(client, published):
    response = client.post("/api/sessions/QUIZ01/participants", json={"name": "Ada", "email": "nope"})
    assert response.status_code == 422
    assert published == []


def test_answer_then_complete_flow(client, published):
    participant = _join(client)
    pid = participant["participant_id"]

    answered = client.post(
        f"/api/sessions/QUIZ01/participants/{pid}/responses",
        json={"question_id": "q1", "answer_id": "a3"},
    )
    assert answered.status_code == 200
    assert answered.json()["responses"] == {"q1": "a3"}

    done = client.post(f"/api/sessions/QUIZ01/participants/{pid}/complete", json={"scores": SCORES})
    assert done.status_code == 200
    assert done.json()["completed"] is True

    names = [event[0] for event in published]
    assert names == ["attendee_joined", "response_received", "attendee_completed", "analytics"]
    completed = published[2]
    assert completed[2] == (pid, SCORES)
    snapshot = published[3][2][0]
    assert snapshot["completed_participants"] == 1
    assert snapshot["average_scores"] == SCORES


def test_answer_after_completion_conflicts(client, published):
    pid = _join(client)["participant_id"]
    client.post(f"/api/sessions/QUIZ01/participants/{pid}/complete", json={"scores": SCORES})

    late = client.post(
        f"/api/sessions/QUIZ01/participants/{pid}/responses",
        json={"question_id": "q2", "answer_id": "a1"},
    )
    assert late.status_code == 409
    again = client.post(f"/api/sessions/QUIZ01/participants/{pid}/complete", json={"scores": SCORES})
    assert again.status_code == 409


def test_unknown_participant_is_404(client, published):
    response = client.post(
        "/api/sessions/QUIZ01/participants/missing/responses",
        json={"question_id": "q1", "answer_id": "a1"},
    )
    assert response.status_code == 404
    assert client.delete("/api/sessions/QUIZ01/participants/missing").status_code == 404


def test_participant_from_other_session_is_404(client, published):
    pid = _join(client, code="OTHER1")["participant_id"]
    response = client.post(f"/api/sessions/QUIZ01/participants/{pid}/complete", json={"scores": SCORES})
    assert response.status_code == 404


def test_delete_broadcasts_and_updates_analytics(client, published):
    keep = _join(client, name="Ada")["participant_id"]
    drop = _join(client, name="Grace")["participant_id"]

    response = client.delete(f"/api/sessions/QUIZ01/participants/{drop}")
    assert response.status_code == 204

    assert published[-2][0] == "attendee_deleted"
    assert published[-2][2] == (drop,)
    assert published[-1][0] == "analytics"
    assert published[-1][2][0]["total_participants"] == 1

    listed = client.get("/api/sessions/QUIZ01/participants").json()
    assert [p["participant_id"] for p in listed] == [keep]


def test_analytics_snapshot(client, published):
    first = _join(client, name="Ada")["participant_id"]
    _join(client, name="Grace")
    client.post(f"/api/sessions/QUIZ01/participants/{first}/complete", json={"scores": SCORES})

    snapshot = client.get("/api/sessions/QUIZ01/analytics").json()
    assert snapshot["total_participants"] == 2
    assert snapshot["completed_participants"] == 1
    assert snapshot["completion_rate"] == 0.5

    empty = client.get("/api/sessions/NOBODY/analytics").json()
    assert empty["total_participants"] == 0
    assert empty["average_scores"] is None
