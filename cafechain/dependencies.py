"""
FastAPI dependencies shared by the routers: current session and role checks.
"""

from typing import Optional

from fastapi import Cookie, Depends

from cafechain.core.exceptions import Unauthorized
from cafechain.core.security import (
    SESSION_COOKIE,
    AdminSession,
    Session,
    UserSession,
    decode_session_token,
)


async def get_session(
    token: Optional[str] = Cookie(None, alias=SESSION_COOKIE),
) -> Session:
    """Session from the ``jwt`` cookie (user or admin)."""
    if not token:
        raise Unauthorized("No token provided")
    return decode_session_token(token)


async def require_user(session: Session = Depends(get_session)) -> UserSession:
    if not isinstance(session, UserSession):
        raise Unauthorized("Customer session required")
    return session


async def require_admin(session: Session = Depends(get_session)) -> AdminSession:
    if not isinstance(session, AdminSession):
        raise Unauthorized("Admin access required")
    return session
