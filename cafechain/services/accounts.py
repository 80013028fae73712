"""
Customer accounts: signup, login and password reset.

Admin login is not backed by a row; matching the configured
ADMIN_EMAIL / ADMIN_PASSWORD yields an ``AdminSession``.
"""

import hmac
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cafechain.core.config import get_settings
from cafechain.core.exceptions import Conflict, InvalidInput, NotFound, Unauthorized
from cafechain.core.security import (
    AdminSession,
    Session,
    UserSession,
    hash_password,
    verify_password,
)
from cafechain.models import User

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def is_admin_login(email: str, password: str) -> bool:
    settings = get_settings()
    if not (settings.admin_email and settings.admin_password):
        return False
    return email == settings.admin_email and hmac.compare_digest(
        password.encode(), settings.admin_password.encode()
    )


async def signup(
    db: AsyncSession,
    name: str,
    email: str,
    password: str,
    phone_number: str,
) -> User:
    """
    Create a customer account.

    Raises:
        Conflict: Email already registered
    """
    if await get_user_by_email(db, email):
        raise Conflict("User already exists")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        phone_number=phone_number,
    )
    db.add(user)

    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent signup for the same email
        await db.rollback()
        raise Conflict("User already exists")

    await db.refresh(user)
    logger.info(f"User #{user.id} signed up")
    return user


async def login(db: AsyncSession, email: str, password: str) -> Session:
    """
    Check credentials and return the session to issue.

    Raises:
        NotFound: Unknown email
        Unauthorized: Wrong password
    """
    if is_admin_login(email, password):
        logger.info("Admin logged in")
        return AdminSession()

    user = await get_user_by_email(db, email)
    if not user:
        raise NotFound("User does not exists")

    if not verify_password(password, user.password_hash):
        logger.warning(f"Failed login for user #{user.id}")
        raise Unauthorized("Password does not match")

    return UserSession(user_id=user.id)


async def reset_password(
    db: AsyncSession,
    email: Optional[str],
    current_password: Optional[str],
    new_password: Optional[str],
) -> None:
    """
    Replace the password after checking the current one.

    Raises:
        InvalidInput: Any field missing
        NotFound: Unknown email
        Unauthorized: Current password is wrong
    """
    if not email or not current_password or not new_password:
        raise InvalidInput("Invalid credentials")

    user = await get_user_by_email(db, email)
    if not user:
        raise NotFound("User not found")

    if not verify_password(current_password, user.password_hash):
        raise Unauthorized("Invalid credentials")

    user.password_hash = hash_password(new_password)
    await db.commit()
    logger.info(f"User #{user.id} reset password")
