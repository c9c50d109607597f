"""Owner edits of PENDING appointments."""
from __future__ import annotations

from datetime import timedelta

import pytest

from carapp.extensions import db
from carapp.models import Appointment, AppointmentStatus, utc_now


def _slot(days: int, hour: int = 10) -> str:
    return (
        (utc_now() + timedelta(days=days))
        .replace(hour=hour, minute=0, second=0, microsecond=0)
        .isoformat()
    )


@pytest.fixture
def booked(client, make_user, make_car, make_center, auth_headers):
    owner_id = make_user("bela@example.com", name="Bela")
    car_id = make_car(owner_id)
    center_id = make_center()
    headers = auth_headers("bela@example.com")
    response = client.post(
        "/api/appointments",
        json={
            "car_id": car_id,
            "center_id": center_id,
            "scheduled_at": _slot(1),
            "description": "Oil change",
        },
        headers=headers,
    )
    assert response.status_code == 201
    return {
        "appointment_id": response.json["appointment"]["id"],
        "car_id": car_id,
        "center_id": center_id,
        "headers": headers,
    }


def _set_status(app, appointment_id: int, status: AppointmentStatus) -> None:
    with app.app_context():
        db.session.get(Appointment, appointment_id).status = status
        db.session.commit()


def test_update_description_and_time(client, booked) -> None:
    new_time = _slot(3, hour=14)

    response = client.put(
        f"/api/appointments/{booked['appointment_id']}",
        json={"description": "Oil and filter", "scheduled_at": new_time},
        headers=booked["headers"],
    )

    assert response.status_code == 200
    appointment = response.json["appointment"]
    assert appointment["description"] == "Oil and filter"
    assert appointment["scheduled_at"].startswith(new_time[:16])
    assert appointment["status"] == "PENDING"


def test_blank_fields_are_left_unchanged(client, booked) -> None:
    response = client.put(
        f"/api/appointments/{booked['appointment_id']}",
        json={"description": "  ", "scheduled_at": ""},
        headers=booked["headers"],
    )

    assert response.status_code == 200
    assert response.json["appointment"]["description"] == "Oil change"


def test_update_center(client, booked, make_center) -> None:
    other_center = make_center("Gumi Pont", city="Debrecen", address="Piac u. 3.")

    response = client.put(
        f"/api/appointments/{booked['appointment_id']}",
        json={"center_id": other_center},
        headers=booked["headers"],
    )

    assert response.status_code == 200
    assert response.json["appointment"]["center"]["id"] == other_center


def test_update_to_unknown_center_is_not_found(client, booked) -> None:
    response = client.put(
        f"/api/appointments/{booked['appointment_id']}",
        json={"center_id": 9999},
        headers=booked["headers"],
    )

    assert response.status_code == 404


def test_resubmitting_current_time_is_not_a_conflict(client, booked) -> None:
    response = client.put(
        f"/api/appointments/{booked['appointment_id']}",
        json={"scheduled_at": _slot(1), "description": "Oil change and wipers"},
        headers=booked["headers"],
    )

    assert response.status_code == 200


def test_moving_onto_a_taken_slot_conflicts(app, client, booked) -> None:
    taken = _slot(2)
    other = client.post(
        "/api/appointments",
        json={
            "car_id": booked["car_id"],
            "center_id": booked["center_id"],
            "scheduled_at": taken,
            "description": "Tyre swap",
        },
        headers=booked["headers"],
    )
    assert other.status_code == 201

    response = client.put(
        f"/api/appointments/{booked['appointment_id']}",
        json={"scheduled_at": taken, "description": "changed"},
        headers=booked["headers"],
    )

    assert response.status_code == 409
    with app.app_context():
        # The rejected edit must not have touched the row.
        assert db.session.get(Appointment, booked["appointment_id"]).description == "Oil change"


def test_moving_into_the_past_is_rejected(client, booked) -> None:
    past = (utc_now() - timedelta(hours=1)).isoformat()

    response = client.put(
        f"/api/appointments/{booked['appointment_id']}",
        json={"scheduled_at": past},
        headers=booked["headers"],
    )

    assert response.status_code == 400


@pytest.mark.parametrize("status", [AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED])
def test_only_pending_appointments_are_editable(app, client, booked, status) -> None:
    _set_status(app, booked["appointment_id"], status)

    response = client.put(
        f"/api/appointments/{booked['appointment_id']}",
        json={"description": "too late"},
        headers=booked["headers"],
    )

    assert response.status_code == 409


def test_non_owner_cannot_edit(client, booked, make_user, auth_headers) -> None:
    make_user("mallory@example.com")

    response = client.put(
        f"/api/appointments/{booked['appointment_id']}",
        json={"description": "mine now"},
        headers=auth_headers("mallory@example.com"),
    )

    assert response.status_code == 403


def test_update_unknown_appointment_is_not_found(client, booked) -> None:
    response = client.put(
        "/api/appointments/9999", json={"description": "x"}, headers=booked["headers"]
    )

    assert response.status_code == 404
