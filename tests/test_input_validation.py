"""Malformed and out-of-range input is answered with 400, never a server error."""
from __future__ import annotations

import pytest

from carapp.models import Appointment


@pytest.mark.parametrize(
    "query",
    [
        "month=--5",
        "month=%C2%B2",
        "month=1.5",
        "year=99999999999999999999999",
        "year=-99999999999999999999999",
    ],
)
def test_monthly_top_rejects_bad_integers(client, query) -> None:
    response = client.get(f"/api/centers/top?{query}")

    assert response.status_code == 400
    assert response.json["error"] == "invalid_payload"


@pytest.fixture
def booking(make_user, make_car, make_center, auth_headers, tomorrow_at_ten):
    owner_id = make_user("bela@example.com")
    return {
        "payload": {
            "car_id": make_car(owner_id),
            "center_id": make_center(),
            "scheduled_at": tomorrow_at_ten,
            "description": "Oil change",
        },
        "headers": auth_headers("bela@example.com"),
    }


@pytest.mark.parametrize(
    "override",
    [
        {"car_id": 10**25},
        {"center_id": 10**25},
        {"car_id": "--5"},
        {"center_id": "²"},
        {"scheduled_at": "9999-12-31T23:00:00-05:00"},
        {"scheduled_at": "0001-01-01T00:30:00+05:00"},
    ],
)
def test_create_appointment_rejects_out_of_range_input(app, client, booking, override) -> None:
    payload = dict(booking["payload"], **override)

    response = client.post("/api/appointments", json=payload, headers=booking["headers"])

    assert response.status_code == 400
    assert response.json["error"] == "invalid_payload"
    with app.app_context():
        assert Appointment.query.count() == 0


def test_update_appointment_rejects_overflowing_time(client, booking) -> None:
    created = client.post("/api/appointments", json=booking["payload"], headers=booking["headers"])
    appointment_id = created.json["appointment"]["id"]

    response = client.put(
        f"/api/appointments/{appointment_id}",
        json={"scheduled_at": "9999-12-31T23:00:00-05:00"},
        headers=booking["headers"],
    )

    assert response.status_code == 400


def test_car_year_out_of_range(client, make_user, auth_headers) -> None:
    make_user("bela@example.com")

    response = client.post(
        "/api/cars",
        json={"brand": "Opel", "model": "Corsa", "year": 10**30},
        headers=auth_headers("bela@example.com"),
    )

    assert response.status_code == 400


def test_huge_page_number_returns_empty_page(client, make_user, make_post) -> None:
    make_post(make_user("bela@example.com"))

    response = client.get(f"/api/forum/posts?page={2**62}&limit=50")

    assert response.status_code == 200
    assert response.json["posts"] == []


def test_path_id_beyond_integer_range_is_not_found(client) -> None:
    response = client.get(f"/api/cars/{10**25}")

    assert response.status_code == 404
    assert response.json["error"] == "not_found"
