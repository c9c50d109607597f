"""HTTP routes for the car-service backend."""
from __future__ import annotations

from flask import Flask
from werkzeug.routing import IntegerConverter

from . import admin, appointments, auth, cars, centers, forum, health
from .common import MAX_INT

API_PREFIX = "/api"


class BoundedIntConverter(IntegerConverter):
    """``<int:...>`` that stops matching above the stored integer range."""

    def __init__(self, map, fixed_digits=0, min=None, max=MAX_INT, signed=False):
        super().__init__(map, fixed_digits=fixed_digits, min=min, max=max, signed=signed)


def register_routes(app: Flask) -> None:
    # Rules pick up their converters when added, so this goes first.
    app.url_map.converters["int"] = BoundedIntConverter
    for module in (health, auth, cars, centers, appointments, forum, admin):
        app.register_blueprint(module.bp, url_prefix=API_PREFIX)
