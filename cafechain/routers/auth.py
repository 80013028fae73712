"""
Auth routes: signup, login/logout, email OTP and password reset.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from cafechain.core.security import UserSession, clear_session_cookie, set_session_cookie
from cafechain.database import get_db
from cafechain.schemas import (
    LoginRequest,
    ResetPasswordRequest,
    SendOTPRequest,
    SignupRequest,
    VerifyOTPRequest,
    envelope,
)
from cafechain.services import accounts, otp
from cafechain.services.notifications import BaseNotificationService, get_notification_service

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/signup", summary="Create Account")
async def signup(
    body: SignupRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> dict:
    user = await accounts.signup(db, body.name, body.email, body.password, body.number)
    set_session_cookie(response, UserSession(user_id=user.id))
    return envelope("User created successfully")


@router.post("/login", summary="Log In")
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Customer or admin login; the session cookie carries the role."""
    session = await accounts.login(db, body.email, body.password)
    set_session_cookie(response, session)

    if session.is_admin:
        return envelope("Admin")
    return envelope("User logged in successfully")


@router.post("/logout", summary="Log Out")
async def logout(response: Response) -> dict:
    clear_session_cookie(response)
    return envelope("User log out successfully")


@router.post("/sendOTP", summary="Email Verification Code")
async def send_otp(
    body: SendOTPRequest,
    db: AsyncSession = Depends(get_db),
    notifier: BaseNotificationService = Depends(get_notification_service),
) -> dict:
    await otp.send_otp(db, notifier, body.email)
    return envelope("OTP sent successfully! Check your email.")


@router.post("/verifyOTP", summary="Verify Email Code")
async def verify_otp(
    body: VerifyOTPRequest,
    db: AsyncSession = Depends(get_db),
) -> dict:
    await otp.verify_otp(db, body.email, body.verification_code)
    return envelope("Email verified successfully")


@router.post("/resetPassword", summary="Reset Password")
async def reset_password(
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> dict:
    await accounts.reset_password(db, body.email, body.password, body.new_password)
    return envelope("Password reset successfully")
