"""Registration, login and user profiles."""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from ..errors import Conflict, NotFound, Unauthenticated, ValidationError
from ..extensions import db
from ..models import AuthAccount, Role, User, utc_now
from ..security import AuthContext, auth_required, issue_token
from .common import json_payload, optional_text

bp = Blueprint("auth", __name__)

MIN_PASSWORD_LENGTH = 6


def _check_email(email: str) -> None:
    if "@" not in email:
        raise ValidationError("email must be a valid address")


def _check_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"password must be at least {MIN_PASSWORD_LENGTH} characters long")


@bp.post("/auth/register")
def register_user() -> tuple[dict[str, object], int]:
    """Register a new USER account and log it in.
    ---
    tags:
      - Authentication
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            name:
              type: string
            email:
              type: string
            password:
              type: string
          required:
            - name
            - email
            - password
    responses:
      201:
        description: User registered, returns access token
      400:
        description: Invalid payload
      409:
        description: Email already in use
    """
    payload = json_payload()

    name = str(payload.get("name") or "").strip()
    email = str(payload.get("email") or "").strip().lower()
    password = str(payload.get("password") or "")

    if not name or not email or not password:
        raise ValidationError("name, email, and password are required")
    _check_email(email)
    _check_password(password)

    if User.query.filter_by(email=email).first():
        raise Conflict("email address is already in use")

    # Public registration always yields a USER; only an admin can promote.
    user = User(name=name, email=email, role=Role.USER)
    db.session.add(user)
    db.session.flush()
    db.session.add(AuthAccount(user_id=user.user_id, password_hash=generate_password_hash(password)))
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise Conflict("email address is already in use") from exc

    current_app.logger.info("Registered user %s", user.user_id)
    return jsonify({"token": issue_token(user), "user": user.to_dict_basic()}), 201


@bp.post("/auth/login")
def login() -> tuple[dict[str, object], int]:
    """Authenticate by email/password and return an access token.
    ---
    tags:
      - Authentication
    responses:
      200:
        description: Login successful, returns access token
      400:
        description: Missing email or password
      401:
        description: Invalid credentials
    """
    payload = json_payload()

    email = str(payload.get("email") or "").strip().lower()
    password = str(payload.get("password") or "")
    if not email or not password:
        raise ValidationError("email and password are required")

    record = (
        db.session.query(User, AuthAccount)
        .join(AuthAccount, AuthAccount.user_id == User.user_id)
        .filter(User.email == email)
        .first()
    )
    # Same answer for unknown email and wrong password.
    if not record or not check_password_hash(record[1].password_hash, password):
        raise Unauthenticated("invalid email or password")

    user, auth_account = record
    auth_account.last_login_at = utc_now()
    db.session.commit()

    return jsonify({"token": issue_token(user), "user": user.to_dict_basic()}), 200


@bp.get("/users/me")
@auth_required
def get_profile(auth: AuthContext) -> tuple[dict[str, object], int]:
    """Return the authenticated caller's profile.
    ---
    tags:
      - Users
    responses:
      200:
        description: Caller profile
      401:
        description: Missing or invalid token
    """
    user = db.session.get(User, auth.user_id)
    if user is None:
        raise NotFound("User not found")
    return jsonify({"user": user.to_dict_basic()}), 200


@bp.put("/users/me")
@auth_required
def update_profile(auth: AuthContext) -> tuple[dict[str, object], int]:
    """Update the caller's name, email or password.
    ---
    tags:
      - Users
    parameters:
      - name: body
        in: body
        schema:
          type: object
          properties:
            name:
              type: string
            email:
              type: string
            password:
              type: string
    responses:
      200:
        description: Profile updated; returns the user and a fresh access token
      400:
        description: Invalid payload
      401:
        description: Missing or invalid token
      409:
        description: Email already in use
    """
    user = db.session.get(User, auth.user_id)
    if user is None:
        raise NotFound("User not found")

    payload = json_payload()
    name = optional_text(payload, "name")
    email = optional_text(payload, "email")
    password = payload.get("password")
    if password is not None and not isinstance(password, str):
        raise ValidationError("password must be a string")

    # Blank or missing fields keep their current value.
    if email is not None:
        email = email.lower()
        _check_email(email)
        if email != user.email and User.query.filter_by(email=email).first():
            raise Conflict("email address is already in use")
    if password:
        _check_password(password)

    if name is not None:
        user.name = name
    if email is not None:
        user.email = email
    if password:
        if user.auth_account is None:
            user.auth_account = AuthAccount(password_hash=generate_password_hash(password))
        else:
            user.auth_account.password_hash = generate_password_hash(password)
    user.updated_at = utc_now()
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise Conflict("email address is already in use") from exc

    current_app.logger.info("User %s updated their profile", user.user_id)
    # Tokens carry the email, so a changed address needs a new one.
    return jsonify({"token": issue_token(user), "user": user.to_dict_basic()}), 200


@bp.get("/users/<int:user_id>")
@auth_required
def get_user(user_id: int, auth: AuthContext) -> tuple[dict[str, object], int]:
    """Return one user's public profile.
    ---
    tags:
      - Users
    responses:
      200:
        description: User profile
      401:
        description: Missing or invalid token
      404:
        description: User not found
    """
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return jsonify({"user": user.to_dict_basic()}), 200
