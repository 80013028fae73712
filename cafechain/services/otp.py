"""
OTP Email Verification

Lifecycle of the one-time code stored on an account:

    Unverified --send_otp--> Pending(code, issued_at, attempts=0)
    Pending --verify_otp(match)--> Verified  (code cleared)
    Pending --verify_otp(mismatch)--> Pending(attempts + 1)

Sending again replaces any pending code. A pending code stops being
accepted once it is older than ``otp_expiry_minutes`` or after
``otp_max_attempts`` wrong guesses; either limit is disabled by 0.
"""

import hmac
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cafechain.core.config import get_settings
from cafechain.core.exceptions import (
    InvalidCode,
    InvalidInput,
    NotFound,
    ServiceUnavailable,
    UpstreamError,
)
from cafechain.models import User, utcnow
from cafechain.services.notifications import BaseNotificationService
from cafechain.services.notifications.templates import OTP_SUBJECT, render_otp_email

logger = logging.getLogger(__name__)

OTP_DIGITS = 6


def generate_code(digits: int = OTP_DIGITS) -> str:
    """Uniform random numeric code, zero-padded to ``digits``."""
    return f"{secrets.randbelow(10 ** digits):0{digits}d}"


def is_expired(issued_at: Optional[datetime], expiry_minutes: int, now: datetime) -> bool:
    if not expiry_minutes:
        return False
    if issued_at is None:
        return True
    return now - issued_at > timedelta(minutes=expiry_minutes)


def _clear(user: User) -> None:
    user.otp_code = None
    user.otp_issued_at = None
    user.otp_attempts = 0


async def _get_user(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def send_otp(
    db: AsyncSession,
    notifier: BaseNotificationService,
    email: Optional[str],
) -> None:
    """
    Issue a fresh code for the account and email it.

    The new code is committed only after the email went out, so a
    failed send leaves the previous state untouched.

    Raises:
        InvalidInput: Email missing
        NotFound: No account with this email
        ServiceUnavailable: Email transport not configured
        UpstreamError: Email provider rejected or failed the send
    """
    settings = get_settings()

    if not email:
        raise InvalidInput("Email is required")

    user = await _get_user(db, email)
    if not user:
        raise NotFound("User not found. Please sign up first.")

    if not notifier.is_configured:
        logger.error(f"OTP requested but {notifier.provider_name} email transport is not configured")
        raise ServiceUnavailable("Email service not configured. Please contact support.")

    code = generate_code()
    user.otp_code = code
    user.otp_issued_at = utcnow()
    user.otp_attempts = 0

    html, text = render_otp_email(code, settings.otp_expiry_minutes)
    result = await notifier.send_email(
        to_email=email,
        subject=OTP_SUBJECT,
        body_html=html,
        body_text=text,
    )

    if not result.success:
        await db.rollback()
        logger.error(f"OTP email to {email} failed via {result.provider}: {result.error_message}")
        raise UpstreamError("Failed to send OTP. Please try again.")

    await db.commit()
    logger.info(f"OTP issued for user #{user.id} (message {result.message_id})")


async def verify_otp(
    db: AsyncSession,
    email: Optional[str],
    submitted_code: Optional[str],
) -> User:
    """
    Check a submitted code and mark the account verified on a match.

    Raises:
        InvalidInput: Code (or email) missing
        NotFound: No account with this email
        InvalidCode: No pending code, expired, too many attempts, or mismatch
    """
    settings = get_settings()

    if not submitted_code:
        raise InvalidInput("OTP not received")
    if not email:
        raise InvalidInput("Email is required")

    user = await _get_user(db, email)
    if not user:
        raise NotFound("User not found")

    if not user.otp_code:
        raise InvalidCode("Invalid OTP")

    if is_expired(user.otp_issued_at, settings.otp_expiry_minutes, utcnow()):
        _clear(user)
        await db.commit()
        logger.warning(f"Expired OTP submitted for user #{user.id}")
        raise InvalidCode("OTP has expired. Please request a new one.")

    if not hmac.compare_digest(submitted_code.strip().encode(), user.otp_code.encode()):
        attempts = (user.otp_attempts or 0) + 1
        exhausted = bool(settings.otp_max_attempts) and attempts >= settings.otp_max_attempts
        logger.warning(f"Wrong OTP for user #{user.id} (attempt {attempts})")

        if exhausted:
            _clear(user)
        else:
            user.otp_attempts = attempts
        await db.commit()

        if exhausted:
            raise InvalidCode("Too many invalid attempts. Please request a new OTP.")
        raise InvalidCode("Invalid OTP")

    user.is_verified = True
    _clear(user)
    await db.commit()

    logger.info(f"User #{user.id} verified email")
    return user
