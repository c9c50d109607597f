"""Typed failures raised by the service layer and their HTTP mapping.

Every failure a client can act on has its own class, status code and stable
``error`` code, so clients branch on ``error`` and never parse ``message``.
Only :class:`Unavailable` (the database could not be reached or the call
timed out) is worth retrying; the write must then be treated as not
committed.
"""
from __future__ import annotations

from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .extensions import db


class ServiceError(Exception):
    status_code = 500
    error = "internal_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.error)
        self.message = message or self.error

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error, "message": self.message}


class Unauthenticated(ServiceError):
    status_code = 401
    error = "unauthorized"


class Forbidden(ServiceError):
    status_code = 403
    error = "forbidden"


class NotFound(ServiceError):
    status_code = 404
    error = "not_found"


class Conflict(ServiceError):
    status_code = 409
    error = "conflict"


class ValidationError(ServiceError):
    status_code = 400
    error = "invalid_payload"


class Unavailable(ServiceError):
    status_code = 503
    error = "database_error"


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ServiceError)
    def handle_service_error(exc: ServiceError):
        # Discard anything a rejected request staged in the session.
        db.session.rollback()
        response = jsonify(exc.to_dict())
        if isinstance(exc, Unauthenticated):
            response.headers["WWW-Authenticate"] = "Bearer"
        return response, exc.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(exc: SQLAlchemyError):
        db.session.rollback()
        app.logger.exception("Database operation failed", exc_info=exc)
        return handle_service_error(Unavailable("database unavailable, retry later"))

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        code = (exc.name or "error").lower().replace(" ", "_")
        return jsonify({"error": code, "message": exc.description}), exc.code
