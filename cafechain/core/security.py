"""
Password Hashing and Session Tokens

Passwords are stored as salted hashes (werkzeug.security). Sessions are
HS256 JWTs carried in the ``jwt`` cookie. A session is either a
``UserSession`` bound to an account row or an ``AdminSession``, which
has no row behind it; the token's ``role`` claim says which.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Union

import jwt
from fastapi import Response
from werkzeug.security import check_password_hash, generate_password_hash

from cafechain.core.config import get_settings
from cafechain.core.exceptions import Unauthorized

logger = logging.getLogger(__name__)

SESSION_COOKIE = "jwt"
JWT_ALGORITHM = "HS256"

ROLE_USER = "user"
ROLE_ADMIN = "admin"


# =============================================================================
# PASSWORDS
# =============================================================================

def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return check_password_hash(password_hash, password)


# =============================================================================
# SESSIONS
# =============================================================================

@dataclass(frozen=True)
class UserSession:
    """Session of a signed-up customer."""
    user_id: int

    @property
    def is_admin(self) -> bool:
        return False


@dataclass(frozen=True)
class AdminSession:
    """Session opened with the configured admin credentials."""

    @property
    def is_admin(self) -> bool:
        return True


Session = Union[UserSession, AdminSession]


def create_session_token(session: Session) -> str:
    """Sign a token for the given session."""
    settings = get_settings()
    now = datetime.now(timezone.utc)

    if isinstance(session, AdminSession):
        claims = {"role": ROLE_ADMIN, "sub": ROLE_ADMIN}
    else:
        claims = {"role": ROLE_USER, "sub": str(session.user_id)}

    claims["iat"] = now
    claims["exp"] = now + timedelta(days=settings.session_days)

    return jwt.encode(claims, settings.jwt_secret_key, algorithm=JWT_ALGORITHM)


def decode_session_token(token: str) -> Session:
    """
    Verify a session token and return the session it describes.

    Raises:
        Unauthorized: If the signature, expiry or claims are invalid
    """
    settings = get_settings()

    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Invalid or expired token")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected session token: {e}")
        raise Unauthorized("Invalid or expired token")

    role = claims.get("role")
    if role == ROLE_ADMIN:
        return AdminSession()
    if role == ROLE_USER:
        try:
            return UserSession(user_id=int(claims["sub"]))
        except (TypeError, ValueError):
            raise Unauthorized("Invalid or expired token")

    raise Unauthorized("Invalid or expired token")


def set_session_cookie(response: Response, session: Session) -> str:
    """Issue a session token and attach it to the response as a cookie."""
    settings = get_settings()
    token = create_session_token(session)

    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )
    return token


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE)
