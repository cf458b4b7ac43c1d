"""Authentication router."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_api.core.auth import CurrentUser, get_current_user
from enrollment_api.core.database import get_db
from enrollment_api.core.rate_limit import rate_limiter
from enrollment_api.modules.auth import service
from enrollment_api.modules.auth.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdatePasswordRequest,
)
from enrollment_api.modules.shared import ok

logger = logging.getLogger(__name__)

router = APIRouter()

# 5 reset emails per 15 minutes per client IP
FORGOT_PASSWORD_RATE_LIMIT = (5, 15 * 60)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Create a student account and return an access token.

    Raises:
        400: Missing email/password or password shorter than 6 characters
        409: Email or username already in use
    """
    return ok(await service.register(db, data))


@router.post("/login")
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Authenticate with an email or username and return an access token.

    Raises:
        401: Invalid credentials
    """
    return ok(await service.login(db, data))


@router.post(
    "/forgot-password",
    dependencies=[Depends(rate_limiter("forgot_password", *FORGOT_PASSWORD_RATE_LIMIT))],
)
async def forgot_password(
    data: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Email a single-use password reset link."""
    result = await service.forgot_password(db, data.email)
    return ok(result, message=service.FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password")
async def reset_password(
    data: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> dict:
    await service.reset_password(db, data.token, data.new_password)
    return ok(message="Password has been reset")


@router.post("/update-password")
async def update_password(
    data: UpdatePasswordRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await service.update_password(db, user.id, data.current_password, data.new_password)
    return ok(message="Password updated")


@router.get("/me")
async def me(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Current caller's profile."""
    return ok(await service.get_profile(db, user.id))


@router.patch("/profile")
async def update_profile(
    data: ProfileUpdateRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Partially update the caller's profile.

    Raises:
        400: No valid fields to update
        409: Username already in use
    """
    return ok(await service.update_profile(db, user.id, data))
