"""Request parsing helpers shared by the blueprints."""
from __future__ import annotations

from flask import request

from ..errors import ValidationError

# SQLite and most drivers store integers as signed 64-bit.
MIN_INT = -(2**63)
MAX_INT = 2**63 - 1


def json_payload() -> dict[str, object]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _to_int(value: object, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, str):
        text = value.strip()
        if not text.isascii():
            raise ValidationError(f"{field} must be an integer")
        try:
            value = int(text)
        except ValueError as exc:
            raise ValidationError(f"{field} must be an integer") from exc
    if not MIN_INT <= value <= MAX_INT:
        raise ValidationError(f"{field} is out of range")
    return value


def optional_int(payload: dict[str, object], field: str) -> int | None:
    value = payload.get(field)
    if value is None or value == "":
        return None
    return _to_int(value, field)


def query_int(name: str) -> int | None:
    value = request.args.get(name)
    if value is None or not value.strip():
        return None
    return _to_int(value, name)


def optional_text(payload: dict[str, object], field: str) -> str | None:
    value = payload.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value.strip() or None
