from datetime import datetime, timedelta

import pytest

from codearena.contests import contest_service
from codearena.contests.contest_service import derive_contest_status

from conftest import register, run

START = datetime(2025, 3, 1, 10, 0)
END = datetime(2025, 3, 1, 12, 0)


@pytest.mark.parametrize("now,expected", [
    (START - timedelta(seconds=1), "upcoming"),
    (START, "active"),
    (START + timedelta(hours=1), "active"),
    (END, "active"),
    (END + timedelta(seconds=1), "past"),
])
def test_derive_contest_status(now, expected):
    assert derive_contest_status(now, START, END) == expected


def contest_payload(start_offset=timedelta(hours=-1), length=timedelta(hours=2), **overrides):
    start = datetime.utcnow() + start_offset
    payload = {
        "title": "Weekly Round",
        "description": "Four problems, two hours",
        "start_time": start.isoformat(),
        "end_time": (start + length).isoformat(),
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_contest(client, admin):
    def _create(**kwargs):
        response = client.post("/api/contests", json=contest_payload(**kwargs), headers=admin)
        assert response.status_code == 201, response.text
        return response.json()
    return _create


def test_create_contest_derives_status(create_contest):
    assert create_contest()["status"] == "active"
    assert create_contest(start_offset=timedelta(days=1))["status"] == "upcoming"
    assert create_contest(start_offset=timedelta(days=-2))["status"] == "past"


def test_end_must_follow_start(client, admin):
    payload = contest_payload(length=timedelta(0))
    response = client.post("/api/contests", json=payload, headers=admin)
    assert response.status_code == 400


def test_update_cannot_invert_window(client, admin, create_contest):
    contest = create_contest()
    early = (datetime.utcnow() - timedelta(days=5)).isoformat()

    response = client.put(f"/api/contests/{contest['contest_id']}", json={"end_time": early}, headers=admin)
    assert response.status_code == 400

    renamed = client.put(f"/api/contests/{contest['contest_id']}", json={"title": "Renamed"}, headers=admin)
    assert renamed.status_code == 200
    assert renamed.json()["title"] == "Renamed"


def test_students_cannot_create_contests(client, student):
    assert client.post("/api/contests", json=contest_payload(), headers=student).status_code == 403


def test_status_filter(client, create_contest):
    create_contest()
    create_contest(start_offset=timedelta(days=1))

    upcoming = client.get("/api/contests?status=upcoming").json()
    assert [c["status"] for c in upcoming] == ["upcoming"]


def test_participation_is_idempotent(client, db, student, create_contest):
    contest = create_contest()
    url = f"/api/contests/{contest['contest_id']}/participate"

    first = client.post(url, headers=student)
    assert first.status_code == 201
    assert first.json()["already_registered"] is False

    second = client.post(url, headers=student)
    assert second.status_code == 200
    assert second.json()["already_registered"] is True

    assert run(db.contest_participants.count_documents({"contest_id": contest["contest_id"]})) == 1
    assert client.get(f"/api/contests/{contest['contest_id']}").json()["participant_count"] == 1


def test_cannot_join_past_contest(client, student, create_contest):
    contest = create_contest(start_offset=timedelta(days=-2))
    response = client.post(f"/api/contests/{contest['contest_id']}/participate", headers=student)
    assert response.status_code == 400
    assert response.json()["message"] == "Contest has already ended"


def test_full_contest_rejects_new_participants(client, student, create_contest):
    contest = create_contest(max_participants=1)
    url = f"/api/contests/{contest['contest_id']}/participate"

    assert client.post(url, headers=student).status_code == 201

    other, _ = register(client, "late@example.com")
    response = client.post(url, headers=other)
    assert response.status_code == 400
    assert response.json()["message"] == "Contest is full"


def test_delete_removes_participants(client, db, admin, student, create_contest):
    contest = create_contest()
    client.post(f"/api/contests/{contest['contest_id']}/participate", headers=student)

    assert client.delete(f"/api/contests/{contest['contest_id']}", headers=admin).status_code == 204
    assert client.get(f"/api/contests/{contest['contest_id']}").status_code == 404
    assert run(db.contest_participants.count_documents({})) == 0


def test_participants_ranked(client, db, student, create_contest):
    contest = create_contest()
    other, _ = register(client, "second@example.com")
    client.post(f"/api/contests/{contest['contest_id']}/participate", headers=student)
    client.post(f"/api/contests/{contest['contest_id']}/participate", headers=other)

    second_user = run(db.users.find_one({"email": "second@example.com"}))
    run(db.contest_participants.update_one(
        {"contest_id": contest["contest_id"], "user_id": second_user["user_id"]},
        {"$set": {"score": 50}},
    ))

    ranked = client.get(f"/api/contests/{contest['contest_id']}/participants").json()
    assert ranked[0]["user_id"] == second_user["user_id"]
    assert [p["rank"] for p in ranked] == [1, 2]


def test_update_cannot_null_required_fields(client, admin, create_contest):
    contest = create_contest()

    response = client.put(f"/api/contests/{contest['contest_id']}", json={"start_time": None}, headers=admin)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid data"

    assert client.get("/api/contests").status_code == 200
    assert client.get(f"/api/contests/{contest['contest_id']}").json()["status"] == "active"


def test_concurrent_registration_is_not_an_error(client, db, student, create_contest, monkeypatch):
    contest = create_contest()
    url = f"/api/contests/{contest['contest_id']}/participate"
    run(db.contest_participants.create_index([("contest_id", 1), ("user_id", 1)], unique=True))
    assert client.post(url, headers=student).status_code == 201

    real_get_participant = contest_service.get_participant
    lookups = []

    async def stale_then_real(db, contest_id, user_id):
        lookups.append(user_id)
        if len(lookups) == 1:
            # The other request has not inserted yet when this one checks
            return None
        return await real_get_participant(db, contest_id, user_id)

    monkeypatch.setattr(contest_service, "get_participant", stale_then_real)

    response = client.post(url, headers=student)
    assert response.status_code == 200
    assert response.json()["already_registered"] is True
    assert response.json()["participant"]["contest_id"] == contest["contest_id"]
    assert run(db.contest_participants.count_documents({})) == 1


def test_private_contest_is_hidden_from_non_admins(client, admin, student, create_contest):
    contest = create_contest(is_public=False)
    base = f"/api/contests/{contest['contest_id']}"

    assert client.get(base).status_code == 404
    assert client.get(base, headers=student).status_code == 404
    assert client.get(f"{base}/participants", headers=student).status_code == 404
    assert client.post(f"{base}/participate", headers=student).status_code == 404

    assert client.get(base, headers=admin).status_code == 200
    assert client.get(f"{base}/participants", headers=admin).status_code == 200
