from datetime import datetime, timedelta, timezone

import jwt
import pytest

from cafechain.core.exceptions import Unauthorized
from cafechain.core.security import (
    AdminSession,
    UserSession,
    create_session_token,
    decode_session_token,
    hash_password,
    verify_password,
)


def test_password_hash_roundtrip():
    hashed = hash_password("secret123")

    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("secret124", hashed)


def test_user_session_token(settings):
    token = create_session_token(UserSession(user_id=42))

    claims = jwt.decode(token, settings.jwt_secret_key, algorithms=["HS256"])
    assert claims["role"] == "user"
    assert claims["sub"] == "42"
    assert claims["exp"] - claims["iat"] == settings.session_days * 24 * 60 * 60

    assert decode_session_token(token) == UserSession(user_id=42)


def test_admin_session_token():
    session = decode_session_token(create_session_token(AdminSession()))

    assert session == AdminSession()
    assert session.is_admin


def test_token_signed_with_other_key_is_rejected():
    now = datetime.now(timezone.utc)
    forged = jwt.encode(
        {"role": "admin", "sub": "admin", "iat": now, "exp": now + timedelta(days=1)},
        "some-other-secret-key-that-is-long-enough",
        algorithm="HS256",
    )

    with pytest.raises(Unauthorized):
        decode_session_token(forged)


def test_expired_token_is_rejected(settings):
    past = datetime.now(timezone.utc) - timedelta(days=30)
    expired = jwt.encode(
        {"role": "user", "sub": "1", "iat": past, "exp": past + timedelta(days=15)},
        settings.jwt_secret_key,
        algorithm="HS256",
    )

    with pytest.raises(Unauthorized, match="Invalid or expired token"):
        decode_session_token(expired)


@pytest.mark.parametrize(
    "claims",
    [
        {"role": "user", "sub": "not-a-number"},
        {"role": "superuser", "sub": "1"},
        {"sub": "1"},
    ],
)
def test_malformed_claims_are_rejected(settings, claims):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {**claims, "iat": now, "exp": now + timedelta(days=1)},
        settings.jwt_secret_key,
        algorithm="HS256",
    )

    with pytest.raises(Unauthorized):
        decode_session_token(token)
