"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from enybot.database import get_db
from enybot.schemas import (
    RegisterRequest, LoginRequest, ForgotPasswordRequest, ResetPasswordRequest
)
from enybot.services import auth_service

logger = logging.getLogger(__name__)
router = APIRouter()


def _auth_body(message: str, result: dict) -> dict:
    return {
        "status": "success",
        "message": message,
        "user": result["user"].model_dump(by_alias=True, mode="json"),
        "token": result["token"],
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new account.

    - **username**, **email**, **password** (min 6 chars), optional **phone**

    Returns the created user and a JWT valid for 7 days.
    """
    result = await auth_service.register_user(
        db, payload.username, payload.phone, payload.email, payload.password
    )
    return _auth_body("Registration successful.", result)


@router.post("/login")
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Authenticate with email and password and return a JWT."""
    result = await auth_service.login_user(db, credentials.email, credentials.password)
    return _auth_body("Login successful", result)


@router.post("/forgot-password")
async def forgot_password(
    payload: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    """Issue a short-lived, single-use password reset token."""
    reset_token = await auth_service.forgot_password(db, payload.email)
    return {
        "status": "success",
        "message": "Password reset link has been sent to your email",
        "resetToken": reset_token,
    }


@router.post("/reset-password")
async def reset_password(
    payload: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    """Set a new password using a reset token."""
    await auth_service.reset_password(db, payload.token, payload.new_password)
    return {
        "status": "success",
        "message": "Password reset successful",
    }
