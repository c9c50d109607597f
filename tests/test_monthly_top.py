"""Monthly center ranking."""
from __future__ import annotations

from datetime import date

import pytest

from carapp.errors import ValidationError
from carapp.extensions import db
from carapp.models import ServiceVote
from carapp.services import reputation


@pytest.fixture
def add_votes(app):
    def _add_votes(center_id: int, voter_ids: list[int], ratings: list[int], year=2025, month=3):
        with app.app_context():
            for user_id, rating in zip(voter_ids, ratings):
                db.session.add(
                    ServiceVote(
                        user_id=user_id,
                        center_id=center_id,
                        rating=rating,
                        vote_year=year,
                        vote_month=month,
                    )
                )
            db.session.commit()

    return _add_votes


@pytest.fixture
def voters(make_user):
    return [make_user(f"voter{i}@example.com", name=f"Voter {i}") for i in range(3)]


def test_centers_ranked_by_average(client, make_center, add_votes, voters) -> None:
    good = make_center("Good", city="Szeged", address="A u. 1.")
    best = make_center("Best", city="Pecs", address="B u. 2.")
    add_votes(good, voters, [4, 3, 4])
    add_votes(best, voters[:2], [5, 4])

    response = client.get("/api/centers/top?year=2025&month=3")

    assert response.status_code == 200
    ranking = response.json["centers"]
    assert [row["center_id"] for row in ranking] == [best, good]
    assert ranking[0]["avg_rating"] == 4.5
    assert ranking[0]["vote_count"] == 2
    assert ranking[1]["avg_rating"] == 3.67
    assert ranking[1]["vote_count"] == 3


def test_ties_prefer_more_votes_then_lower_id(client, make_center, add_votes, voters) -> None:
    first = make_center("First", city="Gyor", address="C u. 3.")
    second = make_center("Second", city="Gyor", address="D u. 4.")
    busier = make_center("Busier", city="Gyor", address="E u. 5.")
    add_votes(second, voters[:1], [4])
    add_votes(first, voters[1:2], [4])
    add_votes(busier, voters[:2], [4, 4])

    ranking = client.get("/api/centers/top?year=2025&month=3").json["centers"]

    assert [row["center_id"] for row in ranking] == [busier, first, second]


def test_centers_without_votes_in_period_are_omitted(
    client, make_center, add_votes, voters
) -> None:
    voted = make_center("Voted", city="Eger", address="F u. 6.")
    other_month = make_center("Last month", city="Eger", address="G u. 7.")
    make_center("Never", city="Eger", address="H u. 8.")
    add_votes(voted, voters[:1], [3])
    add_votes(other_month, voters[:1], [5], month=2)

    ranking = client.get("/api/centers/top?year=2025&month=3").json["centers"]

    assert [row["center_id"] for row in ranking] == [voted]


def test_empty_month_returns_empty_list(client) -> None:
    response = client.get("/api/centers/top?year=1999&month=1")

    assert response.status_code == 200
    assert response.json["centers"] == []


def test_period_defaults_to_current_month(app, make_center, add_votes, voters) -> None:
    center_id = make_center()
    add_votes(center_id, voters[:1], [5], year=2025, month=7)

    with app.app_context():
        ranking = reputation.monthly_top(today=date(2025, 7, 15))
        other = reputation.monthly_top(today=date(2025, 8, 1))

    assert [row["center_id"] for row in ranking] == [center_id]
    assert other == []


def test_year_only_uses_current_month(app, make_center, add_votes, voters) -> None:
    center_id = make_center()
    add_votes(center_id, voters[:1], [2], year=2024, month=7)

    with app.app_context():
        ranking = reputation.monthly_top(year=2024, today=date(2025, 7, 2))

    assert [row["center_id"] for row in ranking] == [center_id]


@pytest.mark.parametrize("month", ["0", "13", "abc"])
def test_invalid_month_is_rejected(client, month) -> None:
    response = client.get(f"/api/centers/top?year=2025&month={month}")

    assert response.status_code == 400


def test_monthly_top_validates_month_directly(app) -> None:
    with app.app_context(), pytest.raises(ValidationError):
        reputation.monthly_top(year=2025, month=0)
