"""Monthly service-center ratings.

A user gets one vote per center per calendar month (UTC).  Voting again in
the same month overwrites the earlier rating.  The rankings only ever see a
single row per voter, center and month.
"""
from __future__ import annotations

import enum
from datetime import date

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..errors import NotFound, ValidationError
from ..extensions import db
from ..models import ServiceCenter, ServiceVote, utc_now
from ..security import AuthContext

MIN_RATING = 1
MAX_RATING = 5


class VoteOutcome(enum.Enum):
    CREATED = "created"
    UPDATED = "updated"


def current_period(today: date | None = None) -> tuple[int, int]:
    today = today or utc_now().date()
    return today.year, today.month


def validate_rating(rating: object) -> int:
    if not isinstance(rating, int) or isinstance(rating, bool):
        raise ValidationError("Rating must be an integer between 1 and 5")
    if rating < MIN_RATING or rating > MAX_RATING:
        raise ValidationError("Rating must be an integer between 1 and 5")
    return rating


def _find_vote(user_id: int, center_id: int, year: int, month: int) -> ServiceVote | None:
    return ServiceVote.query.filter_by(
        user_id=user_id, center_id=center_id, vote_year=year, vote_month=month
    ).first()


def submit_vote(
    auth: AuthContext,
    center_id: int,
    rating: object,
    today: date | None = None,
) -> tuple[VoteOutcome, ServiceVote]:
    """Record ``auth``'s rating of a center for the current month."""
    rating = validate_rating(rating)
    if db.session.get(ServiceCenter, center_id) is None:
        raise NotFound("Center not found")

    year, month = current_period(today)
    existing = _find_vote(auth.user_id, center_id, year, month)
    if existing is not None:
        existing.rating = rating
        db.session.commit()
        current_app.logger.info(
            "User %s updated vote for center %s (%s-%02d)", auth.user_id, center_id, year, month
        )
        return VoteOutcome.UPDATED, existing

    vote = ServiceVote(
        user_id=auth.user_id,
        center_id=center_id,
        rating=rating,
        vote_year=year,
        vote_month=month,
    )
    db.session.add(vote)
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent request inserted the same period first; keep its row.
        db.session.rollback()
        current_app.logger.warning(
            "Vote insert raced for user %s center %s; updating instead", auth.user_id, center_id
        )
        winner = _find_vote(auth.user_id, center_id, year, month)
        if winner is None:
            raise
        winner.rating = rating
        db.session.commit()
        return VoteOutcome.UPDATED, winner

    current_app.logger.info(
        "User %s voted %s for center %s (%s-%02d)", auth.user_id, rating, center_id, year, month
    )
    return VoteOutcome.CREATED, vote


def monthly_top(
    year: int | None = None,
    month: int | None = None,
    today: date | None = None,
) -> list[dict[str, object]]:
    """Rank centers by their average rating in one month.

    Centers without votes in the period are left out.  Ties on the average
    go to the center with more votes, then to the lower center id.
    """
    default_year, default_month = current_period(today)
    year = default_year if year is None else year
    month = default_month if month is None else month
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")

    avg_rating = func.avg(ServiceVote.rating).label("avg_rating")
    vote_count = func.count(ServiceVote.vote_id).label("vote_count")
    rows = (
        db.session.query(
            ServiceCenter.center_id,
            ServiceCenter.name,
            ServiceCenter.city,
            ServiceCenter.address,
            avg_rating,
            vote_count,
        )
        .join(ServiceVote, ServiceVote.center_id == ServiceCenter.center_id)
        .filter(ServiceVote.vote_year == year, ServiceVote.vote_month == month)
        .group_by(
            ServiceCenter.center_id,
            ServiceCenter.name,
            ServiceCenter.city,
            ServiceCenter.address,
        )
        .order_by(avg_rating.desc(), vote_count.desc(), ServiceCenter.center_id.asc())
        .all()
    )

    return [
        {
            "center_id": row.center_id,
            "name": row.name,
            "city": row.city,
            "address": row.address,
            "avg_rating": round(float(row.avg_rating), 2),
            "vote_count": int(row.vote_count),
        }
        for row in rows
    ]
