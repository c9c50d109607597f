"""Flask extensions shared by the car-service backend."""
from __future__ import annotations

from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy

# One session per request/app context; models and services import this.
db = SQLAlchemy()

# Bound in ``create_app`` with the configured frontend origins.
cors = CORS()
