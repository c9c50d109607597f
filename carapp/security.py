"""Stateless token authentication and per-request identity resolution.

Tokens are itsdangerous-signed JSON payloads (HMAC-SHA256) carrying the
subject (the user's email) and an absolute ``exp`` timestamp.  Nothing about
a session is kept on the server: each request re-verifies its bearer token
and reloads the user, and the resulting :class:`AuthContext` is handed to the
view as an ``auth`` keyword argument.  Views pass it on explicitly to the
service layer.
"""
from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass
from functools import wraps
from typing import Callable

from flask import Request, current_app, request
from itsdangerous import BadData, URLSafeSerializer

from .errors import Forbidden, Unauthenticated
from .models import Role, User

# Login and registration never look at credentials.
AUTH_NAMESPACE = "/api/auth"

MIN_SECRET_BYTES = 32


class TokenConfigurationError(RuntimeError):
    """Raised when the signing secret is missing or too short."""


class TokenService:
    def __init__(
        self,
        secret_key: str | None,
        ttl_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret_key or len(secret_key.encode("utf-8")) < MIN_SECRET_BYTES:
            raise TokenConfigurationError(
                f"SECRET_KEY must be set and at least {MIN_SECRET_BYTES} bytes long"
            )
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._serializer = URLSafeSerializer(
            secret_key,
            salt="auth-token",
            signer_kwargs={"digest_method": hashlib.sha256},
        )

    def issue(self, subject: str, expires_in: int | None = None) -> str:
        """Sign a token for ``subject`` valid for ``expires_in`` seconds."""
        now = int(self._clock())
        lifetime = self.ttl_seconds if expires_in is None else expires_in
        return self._serializer.dumps({"sub": subject, "iat": now, "exp": now + lifetime})

    def verify(self, token: str) -> str | None:
        """Return the token subject, or ``None`` if the token is unusable.

        The signature is checked before the payload is trusted at all; a
        malformed payload or an ``exp`` at or before the current time is
        rejected the same way as a bad signature.
        """
        try:
            payload = self._serializer.loads(token)
        except BadData:
            return None

        if not isinstance(payload, dict):
            return None
        subject = payload.get("sub")
        expires_at = payload.get("exp")
        if not isinstance(subject, str) or not subject:
            return None
        if not isinstance(expires_at, int) or isinstance(expires_at, bool):
            return None
        if expires_at <= self._clock():
            return None
        return subject


@dataclass(frozen=True)
class AuthContext:
    """The authenticated caller of one request."""

    user_id: int
    subject: str
    role: Role
    authorities: frozenset[str]

    @property
    def is_admin(self) -> bool:
        return self.role.is_admin


def get_token_service() -> TokenService:
    return current_app.extensions["token_service"]


def issue_token(user: User) -> str:
    return get_token_service().issue(user.email)


def _bearer_token(req: Request) -> str | None:
    header = req.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[7:].strip() or None


def resolve_auth_context(req: Request, token_service: TokenService) -> AuthContext | None:
    """Turn the request's bearer credential into an :class:`AuthContext`.

    Returns ``None`` (anonymous) when there is no credential, when the token
    fails verification, or when its user has been deleted since the token
    was issued.  None of these abort the request; views that need a caller
    decide what to do with an anonymous one.
    """
    if req.path.startswith(AUTH_NAMESPACE):
        return None

    token = _bearer_token(req)
    if token is None:
        return None

    subject = token_service.verify(token)
    if subject is None:
        current_app.logger.warning("Rejected bearer token on %s %s", req.method, req.path)
        return None

    user = User.query.filter_by(email=subject).first()
    if user is None:
        current_app.logger.info("Token subject %s no longer exists", subject)
        return None

    return AuthContext(
        user_id=user.user_id,
        subject=user.email,
        role=user.role,
        authorities=frozenset({user.role.value}),
    )


def require_admin(auth: AuthContext | None) -> AuthContext:
    if auth is None:
        raise Unauthenticated("authentication required")
    if not auth.is_admin:
        raise Forbidden("administrator role required")
    return auth


def auth_optional(view):
    """Inject ``auth`` (possibly ``None``) into the view."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        kwargs["auth"] = resolve_auth_context(request, get_token_service())
        return view(*args, **kwargs)

    return wrapper


def auth_required(view):
    """Inject ``auth``; anonymous callers get 401."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        auth = resolve_auth_context(request, get_token_service())
        if auth is None:
            raise Unauthenticated("authentication required")
        kwargs["auth"] = auth
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    """Inject ``auth``; anonymous callers get 401, non-admins 403."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        kwargs["auth"] = require_admin(resolve_auth_context(request, get_token_service()))
        return view(*args, **kwargs)

    return wrapper
