"""Administrator user management."""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..errors import NotFound, ValidationError
from ..extensions import db
from ..models import Role, User
from ..security import AuthContext, admin_required
from .common import json_payload

bp = Blueprint("admin", __name__)


def _get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


@bp.get("/admin/users")
@admin_required
def list_users(auth: AuthContext) -> tuple[dict[str, object], int]:
    """List all users (ADMIN).
    ---
    tags:
      - Admin
    responses:
      200:
        description: All users, without credentials
      403:
        description: Caller is not an administrator
    """
    users = User.query.order_by(User.user_id.asc()).all()
    return jsonify({"users": [user.to_dict_basic() for user in users]}), 200


@bp.put("/admin/users/<int:user_id>/role")
@admin_required
def update_user_role(user_id: int, auth: AuthContext) -> tuple[dict[str, object], int]:
    """Change a user's role (ADMIN).
    ---
    tags:
      - Admin
    parameters:
      - name: role
        in: query
        type: string
        enum: [USER, ADMIN]
    responses:
      200:
        description: Role updated
      400:
        description: Unknown role
      404:
        description: User not found
    """
    raw_role = request.args.get("role") or json_payload().get("role")
    try:
        role = Role[str(raw_role or "").strip().upper()]
    except KeyError as exc:
        raise ValidationError("role must be USER or ADMIN") from exc

    user = _get_user(user_id)
    user.role = role
    db.session.commit()
    current_app.logger.info("Admin %s set role of user %s to %s", auth.user_id, user_id, role.value)
    return jsonify({"user": user.to_dict_basic()}), 200


@bp.delete("/admin/users/<int:user_id>")
@admin_required
def delete_user(user_id: int, auth: AuthContext):
    """Delete a user and everything they own (ADMIN).

    Tokens already issued to the user stop resolving to an identity.
    """
    user = _get_user(user_id)
    db.session.delete(user)
    db.session.commit()
    current_app.logger.info("Admin %s deleted user %s", auth.user_id, user_id)
    return "", 204
