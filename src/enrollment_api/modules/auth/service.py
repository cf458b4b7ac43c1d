"""
Auth Service Layer

Account registration, login, password reset and profile management.

Flows:
1. Register: validate input, reject duplicate email/username, hash the
   password, create a student account and issue an access token.
2. Login: accept an email or a username, verify the bcrypt hash and issue
   an access token.
3. Forgot / reset password:
   - A random token is emailed to the user; only its SHA-256 hash is stored
   - Tokens expire after ``password_reset_expire_minutes`` and are single use
   - Expired and used tokens are purged hourly (see jobs.py)
4. Profile: read the caller's account and apply partial updates through a
   fixed field-to-column mapping.
"""

import hashlib
import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_api.core.config import settings
from enrollment_api.core.email import send_password_reset
from enrollment_api.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from enrollment_api.core.security import create_access_token, hash_password, verify_password
from enrollment_api.modules.auth.schemas import (
    PROFILE_FIELD_TO_COLUMN,
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    serialize_user,
)
from enrollment_api.modules.users.models import User
from enrollment_api.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
RESET_TOKEN_LENGTH = 32  # 256 bits of entropy with token_urlsafe

FORGOT_PASSWORD_MESSAGE = "If this email is registered, a reset link has been sent."


def _hash_token(token: str) -> str:
    """Hex-encoded SHA-256 of a reset token. Plain tokens are never stored."""
    return hashlib.sha256(token.encode()).hexdigest()


def _issue_token(user: User) -> str:
    return create_access_token(
        subject=str(user.id),
        additional_claims={"email": user.email, "role": user.role.value},
    )


def _auth_payload(user: User) -> dict[str, Any]:
    return {"token": _issue_token(user), "user": serialize_user(user)}


def _duplicate_message(error: IntegrityError) -> str:
    detail = str(error.orig).lower()
    if "email" in detail:
        return "Email already in use"
    return "Username already in use"


async def register(db: AsyncSession, data: RegisterRequest) -> dict[str, Any]:
    """
    Create a student account.

    Returns:
        ``{"token": ..., "user": ...}``

    Raises:
        ValidationError: Missing email/password or password too short
        ConflictError: Email or username already taken
    """
    if not data.email or not data.password:
        raise ValidationError("email and password are required")
    if len(data.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters")

    email = str(data.email).strip().lower()
    username = (data.username or "").strip() or email.split("@")[0]

    if await UserRepository.email_exists(db, email):
        raise ConflictError("Email already in use")
    if await UserRepository.username_exists(db, username):
        raise ConflictError("Username already in use")

    try:
        user = await UserRepository.create(
            db,
            email=email,
            username=username,
            password_hash=hash_password(data.password),
            first_name=(data.first_name or "").strip(),
            middle_name=(data.middle_name or "").strip() or None,
            last_name=(data.last_name or "").strip(),
            suffix=(data.suffix or "").strip() or None,
            contact_no=(data.contact_no or "").strip() or None,
        )
    except IntegrityError as e:
        # Lost a race with a concurrent registration
        raise ConflictError(_duplicate_message(e)) from e

    logger.info(f"Registered user {user.id}")
    return _auth_payload(user)


async def login(db: AsyncSession, data: LoginRequest) -> dict[str, Any]:
    """
    Authenticate with an email or username.

    Raises:
        ValidationError: Missing identifier or password
        AuthenticationError: Unknown account or wrong password
    """
    login_id = (data.login_id or "").strip()
    if not login_id or not data.password:
        raise ValidationError("username/email and password are required")

    user = await UserRepository.get_by_login(db, login_id)
    if user is None or not verify_password(data.password, user.password_hash):
        logger.warning("Failed login attempt")
        raise AuthenticationError("Invalid email/username or password")

    logger.info(f"User logged in: {user.id} (role: {user.role.value})")
    return _auth_payload(user)


async def forgot_password(db: AsyncSession, email: str | None) -> dict[str, Any] | None:
    """
    Issue a password reset token and email it.

    Returns:
        ``{"resetToken": ...}`` in development so the flow can be
        exercised without email delivery, otherwise None

    Raises:
        ValidationError: Missing email
        NotFoundError: No account uses this email
    """
    email = (email or "").strip().lower()
    if not email:
        raise ValidationError("email is required")

    user = await UserRepository.get_by_email(db, email)
    if user is None:
        raise NotFoundError("No account found with that email")

    token = secrets.token_urlsafe(RESET_TOKEN_LENGTH)
    expires_at = datetime.now(UTC) + timedelta(minutes=settings.password_reset_expire_minutes)
    await UserRepository.create_reset_token(
        db,
        user_id=user.id,
        token_hash=_hash_token(token),
        expires_at=expires_at,
    )

    sent = await send_password_reset(
        to_email=user.email,
        name=user.full_name,
        token=token,
        expires_minutes=settings.password_reset_expire_minutes,
    )
    if not sent:
        logger.warning(f"Password reset email could not be delivered for user {user.id}")

    logger.info(f"Password reset requested for user {user.id}")
    if not settings.is_development:
        return None
    return {"resetToken": token}


async def reset_password(db: AsyncSession, token: str | None, new_password: str | None) -> None:
    """
    Set a new password using a reset token. The token is consumed.

    Raises:
        ValidationError: Missing input, short password, or invalid/expired token
    """
    if not token or not new_password:
        raise ValidationError("token and newPassword are required")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters")

    # Consume first so a token can only ever set one password
    user_id = await UserRepository.consume_reset_token(db, _hash_token(token))
    if user_id is None:
        raise ValidationError("Invalid or expired reset token")

    await UserRepository.update_password(db, user_id, hash_password(new_password))
    logger.info(f"Password reset completed for user {user_id}")


async def update_password(
    db: AsyncSession,
    user_id: UUID,
    current_password: str | None,
    new_password: str | None,
) -> None:
    """
    Change the caller's password after re-checking the current one.

    Raises:
        ValidationError: Missing input, short password, or wrong current password
        NotFoundError: The account no longer exists
    """
    if not current_password or not new_password:
        raise ValidationError("currentPassword and newPassword are required")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"New password should be at least {MIN_PASSWORD_LENGTH} characters")

    user = await UserRepository.get_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")

    await UserRepository.update_password(db, user_id, hash_password(new_password))
    logger.info(f"Password updated for user {user_id}")


async def get_profile(db: AsyncSession, user_id: UUID) -> dict[str, Any]:
    user = await UserRepository.get_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return serialize_user(user)


def _profile_values(data: ProfileUpdateRequest) -> dict[str, Any]:
    """Columns to write, taken only from fields the client actually sent."""
    values: dict[str, Any] = {}
    for field_name, column in PROFILE_FIELD_TO_COLUMN.items():
        if field_name not in data.model_fields_set:
            continue
        value = getattr(data, field_name)
        if isinstance(value, str):
            value = value.strip()
        values[column] = value

    if values.get("username") in ("", None):
        values.pop("username", None)

    if isinstance(data.name, str) and data.name.strip():
        parts = data.name.split()
        values.setdefault("first_name", parts[0])
        values.setdefault("last_name", " ".join(parts[1:]))

    return values


async def update_profile(
    db: AsyncSession,
    user_id: UUID,
    data: ProfileUpdateRequest,
) -> dict[str, Any]:
    """
    Apply a partial profile update.

    Raises:
        ValidationError: Nothing applicable was sent
        ConflictError: The new username is taken
        NotFoundError: The account no longer exists
    """
    values = _profile_values(data)
    if not values:
        raise ValidationError("No valid fields to update")

    try:
        user = await UserRepository.update_fields(db, user_id, values)
    except IntegrityError as e:
        raise ConflictError("Username or email already in use") from e

    if user is None:
        raise NotFoundError("User not found")

    logger.info(f"Profile updated for user {user_id}: {sorted(values)}")
    return serialize_user(user)


__all__ = [
    "FORGOT_PASSWORD_MESSAGE",
    "MIN_PASSWORD_LENGTH",
    "forgot_password",
    "get_profile",
    "login",
    "register",
    "reset_password",
    "update_password",
    "update_profile",
]
