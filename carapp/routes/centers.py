"""Service centers, monthly voting and the monthly ranking."""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import func

from ..errors import ValidationError
from ..extensions import db
from ..models import ServiceCenter
from ..security import AuthContext, admin_required, auth_required
from ..services.reputation import VoteOutcome, monthly_top, submit_vote
from .common import json_payload, optional_text, query_int

bp = Blueprint("centers", __name__)


@bp.get("/centers")
def list_centers() -> tuple[dict[str, object], int]:
    """List service centers, optionally filtered by city.
    ---
    tags:
      - Centers
    parameters:
      - name: city
        in: query
        type: string
        description: Case-insensitive exact city match
    responses:
      200:
        description: List of centers
    """
    city = (request.args.get("city") or "").strip()
    query = ServiceCenter.query
    if city:
        query = query.filter(func.lower(ServiceCenter.city) == city.lower())
    centers = query.order_by(ServiceCenter.name.asc()).all()
    return jsonify({"centers": [center.to_dict() for center in centers]}), 200


@bp.post("/centers")
@admin_required
def create_center(auth: AuthContext) -> tuple[dict[str, object], int]:
    """Create a service center (ADMIN).
    ---
    tags:
      - Centers
    responses:
      201:
        description: Center created
      400:
        description: Invalid payload
      403:
        description: Caller is not an administrator
    """
    payload = json_payload()
    name = optional_text(payload, "name")
    city = optional_text(payload, "city")
    address = optional_text(payload, "address")
    if not name or not city or not address:
        raise ValidationError("name, city, and address are required")

    center = ServiceCenter(
        name=name, city=city, address=address, place_id=optional_text(payload, "place_id")
    )
    db.session.add(center)
    db.session.commit()
    current_app.logger.info("Admin %s created center %s", auth.user_id, center.center_id)
    return jsonify({"center": center.to_dict()}), 201


@bp.post("/centers/<int:center_id>/vote")
@auth_required
def vote_for_center(center_id: int, auth: AuthContext) -> tuple[dict[str, object], int]:
    """Rate a center 1-5; a second vote in the same month replaces the first.
    ---
    tags:
      - Centers
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            rating:
              type: integer
              minimum: 1
              maximum: 5
    responses:
      201:
        description: Vote created for this month
      200:
        description: This month's vote updated
      400:
        description: Rating out of range
      404:
        description: Center not found
    """
    outcome, vote = submit_vote(auth, center_id, json_payload().get("rating"))
    status = 201 if outcome is VoteOutcome.CREATED else 200
    return jsonify({"result": outcome.value, "vote": vote.to_dict()}), status


@bp.get("/centers/top")
def top_centers() -> tuple[dict[str, object], int]:
    """Centers ranked by average rating for one month (default: current).
    ---
    tags:
      - Centers
    parameters:
      - name: year
        in: query
        type: integer
      - name: month
        in: query
        type: integer
    responses:
      200:
        description: Ranked centers with avg_rating and vote_count
      400:
        description: Invalid period
    """
    ranking = monthly_top(year=query_int("year"), month=query_int("month"))
    return jsonify({"centers": ranking}), 200
