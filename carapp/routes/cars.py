"""Vehicle registration; owners manage only their own cars."""
from __future__ import annotations

from flask import Blueprint, jsonify

from ..errors import Forbidden, NotFound, ValidationError
from ..extensions import db
from ..models import Car
from ..security import AuthContext, auth_required
from .common import json_payload, optional_int, optional_text

bp = Blueprint("cars", __name__)

MIN_YEAR = 1886


def _car_fields(payload: dict[str, object]) -> tuple[str, str, int]:
    brand = optional_text(payload, "brand")
    model = optional_text(payload, "model")
    year = optional_int(payload, "year")
    if not brand or not model or year is None:
        raise ValidationError("brand, model, and year are required")
    if year < MIN_YEAR:
        raise ValidationError("year is out of range")
    return brand, model, year


def _owned_car(car_id: int, auth: AuthContext) -> Car:
    car = db.session.get(Car, car_id)
    if car is None:
        raise NotFound("Car not found")
    if car.owner_id != auth.user_id:
        raise Forbidden("Not your car")
    return car


@bp.get("/cars")
def list_cars() -> tuple[dict[str, object], int]:
    """List every registered car.
    ---
    tags:
      - Cars
    responses:
      200:
        description: List of cars
    """
    cars = Car.query.order_by(Car.car_id.asc()).all()
    return jsonify({"cars": [car.to_dict() for car in cars]}), 200


@bp.get("/cars/me")
@auth_required
def list_my_cars(auth: AuthContext) -> tuple[dict[str, object], int]:
    cars = Car.query.filter_by(owner_id=auth.user_id).order_by(Car.car_id.asc()).all()
    return jsonify({"cars": [car.to_dict() for car in cars]}), 200


@bp.get("/cars/<int:car_id>")
def get_car(car_id: int) -> tuple[dict[str, object], int]:
    car = db.session.get(Car, car_id)
    if car is None:
        raise NotFound("Car not found")
    return jsonify({"car": car.to_dict()}), 200


@bp.post("/cars")
@auth_required
def create_car(auth: AuthContext) -> tuple[dict[str, object], int]:
    """Register a car owned by the caller.
    ---
    tags:
      - Cars
    responses:
      201:
        description: Car created
      400:
        description: Invalid payload
      401:
        description: Not authenticated
    """
    brand, model, year = _car_fields(json_payload())
    car = Car(owner_id=auth.user_id, brand=brand, model=model, year=year)
    db.session.add(car)
    db.session.commit()
    return jsonify({"car": car.to_dict()}), 201


@bp.put("/cars/<int:car_id>")
@auth_required
def update_car(car_id: int, auth: AuthContext) -> tuple[dict[str, object], int]:
    car = _owned_car(car_id, auth)
    car.brand, car.model, car.year = _car_fields(json_payload())
    db.session.commit()
    return jsonify({"car": car.to_dict()}), 200


@bp.delete("/cars/<int:car_id>")
@auth_required
def delete_car(car_id: int, auth: AuthContext):
    """Delete one of the caller's cars along with its appointments."""
    car = _owned_car(car_id, auth)
    db.session.delete(car)
    db.session.commit()
    return "", 204
