"""
User Repository

Database operations for accounts and password reset tokens.
"""

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_api.modules.users.models import PasswordResetToken, User, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        username: str,
        password_hash: str,
        first_name: str = "",
        last_name: str = "",
        middle_name: str | None = None,
        suffix: str | None = None,
        contact_no: str | None = None,
        role: UserRole = UserRole.STUDENT,
    ) -> User:
        """
        Create a new user record.

        Raises:
            IntegrityError: If the email or username is already taken. The
                session is rolled back before re-raising.
        """
        user = User(
            email=email,
            username=username,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            middle_name=middle_name,
            suffix=suffix,
            contact_no=contact_no,
            role=role,
        )

        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise
        await db.refresh(user)

        logger.info(f"Created user: {user.id} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: UUID) -> User | None:
        """Get a user by ID."""
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Get a user by email address."""
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_username(db: AsyncSession, username: str) -> User | None:
        """Get a user by username."""
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_login(db: AsyncSession, login_id: str) -> User | None:
        """Get a user whose email or username equals ``login_id``."""
        result = await db.execute(
            select(User).where(or_(User.email == login_id, User.username == login_id)).limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def email_exists(db: AsyncSession, email: str) -> bool:
        return await UserRepository.get_by_email(db, email) is not None

    @staticmethod
    async def username_exists(db: AsyncSession, username: str) -> bool:
        return await UserRepository.get_by_username(db, username) is not None

    @staticmethod
    async def update_fields(db: AsyncSession, user_id: UUID, values: dict[str, Any]) -> User | None:
        """
        Update the given columns of a user.

        Raises:
            IntegrityError: On a duplicate username. The session is rolled back.
        """
        try:
            await db.execute(update(User).where(User.id == user_id).values(**values))
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise

        user = await UserRepository.get_by_id(db, user_id)
        if user is not None:
            await db.refresh(user)
        return user

    @staticmethod
    async def update_password(db: AsyncSession, user_id: UUID, password_hash: str) -> None:
        await db.execute(update(User).where(User.id == user_id).values(password_hash=password_hash))
        await db.commit()

    # ============================================
    # Password reset tokens
    # ============================================

    @staticmethod
    async def create_reset_token(
        db: AsyncSession,
        *,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
    ) -> PasswordResetToken:
        reset_token = PasswordResetToken(
            user_id=user_id,
            token=token_hash,
            expires_at=expires_at,
        )
        db.add(reset_token)
        await db.commit()
        await db.refresh(reset_token)
        return reset_token

    @staticmethod
    async def consume_reset_token(db: AsyncSession, token_hash: str) -> UUID | None:
        """
        Mark an unused, unexpired reset token as used in one statement.

        Returns:
            The owning user's ID, or None if no valid token matched. Of two
            concurrent calls with the same token only one gets the ID.
        """
        now = datetime.now(UTC)
        result = await db.execute(
            update(PasswordResetToken)
            .where(
                PasswordResetToken.token == token_hash,
                PasswordResetToken.used_at.is_(None),
                PasswordResetToken.expires_at > now,
            )
            .values(used_at=now)
            .returning(PasswordResetToken.user_id)
        )
        user_id = result.scalar_one_or_none()
        await db.commit()
        return user_id

    @staticmethod
    async def delete_stale_reset_tokens(db: AsyncSession, now: datetime) -> int:
        """Delete tokens that are used or expired. Returns the number removed."""
        result = await db.execute(
            delete(PasswordResetToken).where(
                or_(
                    PasswordResetToken.used_at.is_not(None),
                    PasswordResetToken.expires_at <= now,
                )
            )
        )
        await db.commit()
        return result.rowcount or 0
