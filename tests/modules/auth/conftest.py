"""
Fixtures for auth tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest

from enrollment_api.core.security import hash_password
from enrollment_api.modules.users.models import User, UserRole

USER_PASSWORD = "secret123"


@pytest.fixture
def user(student_id):
    """A stored student account whose password is USER_PASSWORD."""
    now = datetime.now(UTC)
    return User(
        id=student_id,
        email="ana@example.com",
        username="ana",
        password_hash=hash_password(USER_PASSWORD),
        first_name="Ana",
        middle_name=None,
        last_name="Cruz",
        suffix=None,
        contact_no="09171234567",
        profile_picture_url=None,
        role=UserRole.STUDENT,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def users():
    """UserRepository patched into the auth service with AsyncMock methods."""
    with patch("enrollment_api.modules.auth.service.UserRepository") as mock_repo:
        mock_repo.create = AsyncMock()
        mock_repo.get_by_id = AsyncMock(return_value=None)
        mock_repo.get_by_email = AsyncMock(return_value=None)
        mock_repo.get_by_login = AsyncMock(return_value=None)
        mock_repo.email_exists = AsyncMock(return_value=False)
        mock_repo.username_exists = AsyncMock(return_value=False)
        mock_repo.update_fields = AsyncMock()
        mock_repo.update_password = AsyncMock()
        mock_repo.create_reset_token = AsyncMock()
        mock_repo.consume_reset_token = AsyncMock(return_value=None)
        yield mock_repo


@pytest.fixture
def mailer():
    with patch(
        "enrollment_api.modules.auth.service.send_password_reset",
        new=AsyncMock(return_value=True),
    ) as mock_send:
        yield mock_send
