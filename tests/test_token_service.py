"""Unit tests for token signing and verification."""
from __future__ import annotations

import pytest

from carapp.security import TokenConfigurationError, TokenService

SECRET = "unit-test-secret-key-that-is-32-bytes-or-more"


class FakeClock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_issued_token_verifies_to_subject() -> None:
    service = TokenService(SECRET, ttl_seconds=60)

    token = service.issue("driver@example.com")

    assert service.verify(token) == "driver@example.com"


def test_token_expires_after_ttl() -> None:
    clock = FakeClock(1_700_000_000)
    service = TokenService(SECRET, ttl_seconds=60, clock=clock)
    token = service.issue("driver@example.com")

    clock.now += 59
    assert service.verify(token) == "driver@example.com"

    clock.now += 1
    assert service.verify(token) is None


def test_tampered_token_is_rejected() -> None:
    service = TokenService(SECRET, ttl_seconds=60)
    token = service.issue("driver@example.com")

    tampered = ("f" if token[0] != "f" else "g") + token[1:]

    assert service.verify(tampered) is None


def test_token_signed_with_other_secret_is_rejected() -> None:
    issuer = TokenService("another-secret-key-that-is-also-32-bytes-long", ttl_seconds=60)
    verifier = TokenService(SECRET, ttl_seconds=60)

    assert verifier.verify(issuer.issue("driver@example.com")) is None


def test_garbage_token_is_rejected() -> None:
    service = TokenService(SECRET, ttl_seconds=60)

    assert service.verify("not-a-token") is None
    assert service.verify("") is None


@pytest.mark.parametrize("secret", [None, "", "too-short"])
def test_short_or_missing_secret_fails_fast(secret) -> None:
    with pytest.raises(TokenConfigurationError):
        TokenService(secret, ttl_seconds=60)


def test_create_app_refuses_short_secret() -> None:
    from carapp import create_app

    with pytest.raises(TokenConfigurationError):
        create_app({"SECRET_KEY": "short", "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:"})
