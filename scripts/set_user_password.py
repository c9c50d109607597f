"""Create a user or reset their password and role for local development."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from werkzeug.security import generate_password_hash

# Ensure the project root is on sys.path so ``carapp`` can be imported when the script is executed directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from carapp import create_app
from carapp.extensions import db
from carapp.models import AuthAccount, Role, User


def set_password(email: str, password: str, role: Role, name: str | None = None) -> None:
    app = create_app()

    with app.app_context():
        user = User.query.filter_by(email=email.strip().lower()).first()
        if user is None:
            user = User(name=name or email.split("@")[0], email=email.strip().lower(), role=role)
            db.session.add(user)
            db.session.flush()
            print(f"Created new {role.value} user: {email}")
        elif user.role is not role:
            print(f"Updating user role from '{user.role.value}' to '{role.value}'")
            user.role = role

        account = db.session.get(AuthAccount, user.user_id)
        if account is None:
            account = AuthAccount(user_id=user.user_id)
            db.session.add(account)

        account.password_hash = generate_password_hash(password)
        db.session.commit()

        print(f"Password for {role.value} user '{email}' has been set.")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Set a user password (and role) for local testing.")
    parser.add_argument("email", help="User email address")
    parser.add_argument("password", help="Plain-text password to hash and store")
    parser.add_argument(
        "--role",
        choices=[role.value for role in Role],
        default=Role.USER.value,
        help="User role (default: USER)",
    )
    parser.add_argument("--name", help="Display name for a newly created user")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    set_password(args.email, args.password, Role(args.role), args.name)


if __name__ == "__main__":
    main()
