"""Appointment booking engine.

Appointments start PENDING and may be edited by their owner only while they
stay PENDING.  An administrator moves them to CONFIRMED or CANCELLED; the
owner can always cancel their own booking.  Nothing ever goes back to
PENDING.

A car can hold at most one appointment per exact timestamp.  The lookup
before insert only saves a round trip: the ``uq_appointment_car_slot``
constraint decides, and a commit that trips it is reported as a conflict.
The check is timestamp equality, not interval overlap; two bookings a minute
apart do not collide.
"""
from __future__ import annotations

from datetime import datetime, timezone

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import Conflict, Forbidden, NotFound, ValidationError
from ..extensions import db
from ..models import Appointment, AppointmentStatus, Car, ServiceCenter, utc_now
from ..security import AuthContext

# Targets accepted by the administrator status path.
ADMIN_STATUS_TARGETS = frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED})


def normalize_timestamp(value: datetime) -> datetime:
    """Convert to the naive UTC form stored in the database."""
    if value.tzinfo is not None:
        try:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        except OverflowError as exc:
            raise ValidationError("scheduled_at is out of range") from exc
    return value


def parse_timestamp(raw: object, field: str = "scheduled_at") -> datetime:
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError(f"{field} must be an ISO-8601 datetime string")
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return normalize_timestamp(datetime.fromisoformat(text))
    except ValueError as exc:
        raise ValidationError(f"{field} must be an ISO-8601 datetime string") from exc


def _get_appointment(appointment_id: int) -> Appointment:
    appointment = db.session.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFound("Appointment not found")
    return appointment


def _get_center(center_id: int) -> ServiceCenter:
    center = db.session.get(ServiceCenter, center_id)
    if center is None:
        raise NotFound("Service center not found")
    return center


def _require_owner(auth: AuthContext, appointment: Appointment) -> None:
    if appointment.user_id != auth.user_id:
        raise Forbidden("Not your appointment")


def _require_future(scheduled_at: datetime) -> None:
    if scheduled_at <= utc_now():
        raise ValidationError("scheduled_at must be in the future")


def _slot_taken(car_id: int, scheduled_at: datetime) -> bool:
    return (
        db.session.query(Appointment.appointment_id)
        .filter(Appointment.car_id == car_id, Appointment.scheduled_at == scheduled_at)
        .first()
        is not None
    )


def _commit_slot(car_id: int, scheduled_at: datetime) -> None:
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        current_app.logger.warning(
            "Lost booking race for car %s at %s", car_id, scheduled_at.isoformat()
        )
        raise Conflict("Time slot already booked for this car") from exc


def create_appointment(
    auth: AuthContext,
    car_id: int | None,
    center_id: int | None,
    scheduled_at: datetime | None,
    description: str | None,
) -> Appointment:
    if car_id is None:
        raise ValidationError("car_id is required")
    if center_id is None:
        raise ValidationError("center_id is required")
    if scheduled_at is None:
        raise ValidationError("scheduled_at is required")
    scheduled_at = normalize_timestamp(scheduled_at)
    _require_future(scheduled_at)
    description = (description or "").strip()
    if not description:
        raise ValidationError("description is required")

    car = db.session.get(Car, car_id)
    if car is None:
        raise NotFound("Car not found")
    if car.owner_id != auth.user_id:
        raise Forbidden("Not your car")

    center = _get_center(center_id)

    if _slot_taken(car.car_id, scheduled_at):
        raise Conflict("Time slot already booked for this car")

    appointment = Appointment(
        car=car,
        user_id=auth.user_id,
        center=center,
        scheduled_at=scheduled_at,
        description=description,
        status=AppointmentStatus.PENDING,
        created_at=utc_now(),
    )
    db.session.add(appointment)
    _commit_slot(car.car_id, scheduled_at)

    current_app.logger.info(
        "Appointment %s booked for car %s at %s",
        appointment.appointment_id,
        car.car_id,
        scheduled_at.isoformat(),
    )
    return appointment


def update_appointment(
    auth: AuthContext,
    appointment_id: int,
    description: str | None = None,
    scheduled_at: datetime | None = None,
    center_id: int | None = None,
) -> Appointment:
    """Apply a partial edit to a PENDING appointment owned by ``auth``.

    Only provided, non-blank fields change.  Every check runs before any
    field is touched, so a rejected edit leaves the row as it was.
    """
    appointment = _get_appointment(appointment_id)
    _require_owner(auth, appointment)
    if appointment.status is not AppointmentStatus.PENDING:
        raise Conflict("Only PENDING appointments can be edited")

    new_time = None
    if scheduled_at is not None:
        scheduled_at = normalize_timestamp(scheduled_at)
        if scheduled_at != appointment.scheduled_at:
            _require_future(scheduled_at)
            if _slot_taken(appointment.car_id, scheduled_at):
                raise Conflict("Time slot already booked for this car")
            new_time = scheduled_at

    new_center = None
    if center_id is not None and center_id != appointment.center_id:
        new_center = _get_center(center_id)

    if description is not None and description.strip():
        appointment.description = description.strip()
    if new_time is not None:
        appointment.scheduled_at = new_time
    if new_center is not None:
        appointment.center = new_center

    _commit_slot(appointment.car_id, appointment.scheduled_at)
    return appointment


def cancel_appointment(auth: AuthContext, appointment_id: int) -> Appointment:
    # No status precondition: an owner may cancel a CONFIRMED booking too.
    appointment = _get_appointment(appointment_id)
    _require_owner(auth, appointment)
    appointment.status = AppointmentStatus.CANCELLED
    db.session.commit()
    current_app.logger.info(
        "Appointment %s cancelled by user %s", appointment.appointment_id, auth.user_id
    )
    return appointment


def _coerce_status(value: AppointmentStatus | str | None) -> AppointmentStatus:
    if isinstance(value, AppointmentStatus):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("status is required")
    try:
        return AppointmentStatus[value.strip().upper()]
    except KeyError as exc:
        raise ValidationError("Status must be CONFIRMED or CANCELLED") from exc


def set_appointment_status(
    appointment_id: int, status: AppointmentStatus | str | None
) -> Appointment:
    """Administrator override of an appointment's status.

    The target must be CONFIRMED or CANCELLED.  The current status is not
    consulted, so a CANCELLED booking can be confirmed again.
    """
    target = _coerce_status(status)
    if target not in ADMIN_STATUS_TARGETS:
        raise ValidationError("Status must be CONFIRMED or CANCELLED")

    appointment = _get_appointment(appointment_id)
    previous = appointment.status
    appointment.status = target
    db.session.commit()
    current_app.logger.info(
        "Appointment %s status %s -> %s", appointment.appointment_id, previous.value, target.value
    )
    return appointment


def list_my_appointments(auth: AuthContext) -> list[Appointment]:
    return (
        Appointment.query.filter(Appointment.user_id == auth.user_id)
        .order_by(Appointment.scheduled_at.asc(), Appointment.appointment_id.asc())
        .all()
    )


def list_all_appointments() -> list[Appointment]:
    return Appointment.query.order_by(
        Appointment.scheduled_at.asc(), Appointment.appointment_id.asc()
    ).all()
