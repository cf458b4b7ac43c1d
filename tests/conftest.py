"""
Shared fixtures.
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest

from enrollment_api.core.auth import CurrentUser


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def student_id():
    return UUID("00000000-0000-0000-0000-0000000000aa")


@pytest.fixture
def other_student_id():
    return UUID("00000000-0000-0000-0000-0000000000bb")


@pytest.fixture
def admin_id():
    """Return a consistent admin UUID for testing."""
    return UUID("00000000-0000-0000-0000-000000000001")


@pytest.fixture
def student(student_id):
    return CurrentUser(id=student_id, email="ana@example.com", role="student")


@pytest.fixture
def admin(admin_id):
    return CurrentUser(id=admin_id, email="registrar@school.edu", role="admin")
