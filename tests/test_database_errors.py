"""Store failures surface as a retryable 503 with nothing committed."""
from __future__ import annotations

from sqlalchemy.exc import OperationalError

from carapp.extensions import db
from carapp.models import Appointment, ServiceVote


def _fail_commit():
    raise OperationalError("COMMIT", {}, Exception("database is locked"))


def test_vote_commit_failure_is_unavailable(
    app, client, make_user, make_center, auth_headers, monkeypatch
) -> None:
    make_user("bela@example.com")
    center_id = make_center()
    headers = auth_headers("bela@example.com")
    monkeypatch.setattr(db.session, "commit", _fail_commit)

    response = client.post(f"/api/centers/{center_id}/vote", json={"rating": 4}, headers=headers)

    assert response.status_code == 503
    assert response.json["error"] == "database_error"
    with app.app_context():
        assert ServiceVote.query.count() == 0


def test_booking_commit_failure_is_unavailable(
    app, client, make_user, make_car, make_center, auth_headers, tomorrow_at_ten, monkeypatch
) -> None:
    owner_id = make_user("bela@example.com")
    payload = {
        "car_id": make_car(owner_id),
        "center_id": make_center(),
        "scheduled_at": tomorrow_at_ten,
        "description": "Oil change",
    }
    headers = auth_headers("bela@example.com")
    monkeypatch.setattr(db.session, "commit", _fail_commit)

    response = client.post("/api/appointments", json=payload, headers=headers)

    assert response.status_code == 503
    assert response.json == {
        "error": "database_error",
        "message": "database unavailable, retry later",
    }
    monkeypatch.undo()

    with app.app_context():
        assert Appointment.query.count() == 0
    # Nothing half-written blocks a retry.
    assert client.post("/api/appointments", json=payload, headers=headers).status_code == 201
