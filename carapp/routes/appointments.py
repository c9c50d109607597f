"""Appointment booking endpoints."""
from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..security import AuthContext, admin_required, auth_required
from ..services import appointments as engine
from .common import json_payload, optional_int, optional_text

bp = Blueprint("appointments", __name__)


def _scheduled_at(payload: dict[str, object]):
    raw = payload.get("scheduled_at")
    if raw is None or raw == "":
        return None
    return engine.parse_timestamp(raw)


@bp.get("/appointments")
@admin_required
def list_appointments(auth: AuthContext) -> tuple[dict[str, object], int]:
    """List every appointment (ADMIN).
    ---
    tags:
      - Appointments
    responses:
      200:
        description: All appointments
      401:
        description: Not authenticated
      403:
        description: Caller is not an administrator
    """
    appointments = engine.list_all_appointments()
    return jsonify({"appointments": [appt.to_dict() for appt in appointments]}), 200


@bp.get("/appointments/me")
@auth_required
def list_my_appointments(auth: AuthContext) -> tuple[dict[str, object], int]:
    """List the caller's own appointments.
    ---
    tags:
      - Appointments
    responses:
      200:
        description: Caller's appointments
      401:
        description: Not authenticated
    """
    appointments = engine.list_my_appointments(auth)
    return jsonify({"appointments": [appt.to_dict() for appt in appointments]}), 200


@bp.post("/appointments")
@auth_required
def create_appointment(auth: AuthContext) -> tuple[dict[str, object], int]:
    """Book a service appointment for one of the caller's cars.
    ---
    tags:
      - Appointments
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            car_id:
              type: integer
            center_id:
              type: integer
            scheduled_at:
              type: string
              format: date-time
            description:
              type: string
          required:
            - car_id
            - center_id
            - scheduled_at
            - description
    responses:
      201:
        description: Appointment created (PENDING)
      400:
        description: Invalid payload or time not in the future
      401:
        description: Not authenticated
      403:
        description: Car belongs to someone else
      404:
        description: Car or center not found
      409:
        description: Time slot already booked for this car
    """
    payload = json_payload()
    appointment = engine.create_appointment(
        auth,
        car_id=optional_int(payload, "car_id"),
        center_id=optional_int(payload, "center_id"),
        scheduled_at=_scheduled_at(payload),
        description=optional_text(payload, "description"),
    )
    return jsonify({"appointment": appointment.to_dict()}), 201


@bp.put("/appointments/<int:appointment_id>")
@auth_required
def update_appointment(appointment_id: int, auth: AuthContext) -> tuple[dict[str, object], int]:
    """Edit description, time or center of a PENDING appointment.
    ---
    tags:
      - Appointments
    responses:
      200:
        description: Appointment updated
      403:
        description: Not the caller's appointment
      404:
        description: Appointment or center not found
      409:
        description: Appointment is no longer PENDING, or slot taken
    """
    payload = json_payload()
    appointment = engine.update_appointment(
        auth,
        appointment_id,
        description=optional_text(payload, "description"),
        scheduled_at=_scheduled_at(payload),
        center_id=optional_int(payload, "center_id"),
    )
    return jsonify({"appointment": appointment.to_dict()}), 200


@bp.delete("/appointments/<int:appointment_id>")
@auth_required
def cancel_appointment(appointment_id: int, auth: AuthContext) -> tuple[dict[str, object], int]:
    """Cancel one of the caller's appointments, whatever its status.
    ---
    tags:
      - Appointments
    responses:
      200:
        description: Appointment cancelled
      403:
        description: Not the caller's appointment
      404:
        description: Appointment not found
    """
    appointment = engine.cancel_appointment(auth, appointment_id)
    return jsonify({"appointment": appointment.to_dict()}), 200


@bp.put("/appointments/<int:appointment_id>/status")
@admin_required
def update_appointment_status(
    appointment_id: int, auth: AuthContext
) -> tuple[dict[str, object], int]:
    """Set an appointment to CONFIRMED or CANCELLED (ADMIN).
    ---
    tags:
      - Appointments
    parameters:
      - name: status
        in: query
        type: string
        enum: [CONFIRMED, CANCELLED]
    responses:
      200:
        description: Status updated
      400:
        description: Status must be CONFIRMED or CANCELLED
      404:
        description: Appointment not found
    """
    status = request.args.get("status") or json_payload().get("status")
    appointment = engine.set_appointment_status(appointment_id, status)
    return jsonify({"appointment": appointment.to_dict()}), 200
