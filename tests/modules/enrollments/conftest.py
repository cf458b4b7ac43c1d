"""
Fixtures for enrollment tests.
"""

import copy
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import MagicMock, patch
from uuid import UUID, uuid4

import pytest

from enrollment_api.modules.enrollments.models import Enrollment, EnrollmentStatus


class InMemoryEnrollmentStore:
    """
    Dict-backed stand-in for the enrollment repository module.

    Mirrors the column-level semantics of the real queries: upserts only
    replace the sections they are given, and the guarded UPDATEs report
    whether a row matched.
    """

    def __init__(self):
        self.by_user: dict[UUID, Enrollment] = {}
        self.writes: list[dict] = []

    def _find(self, enrollment_id: UUID) -> Enrollment | None:
        for enrollment in self.by_user.values():
            if enrollment.id == enrollment_id:
                return enrollment
        return None

    async def get_by_user_id(self, db, user_id):
        return self.by_user.get(user_id)

    async def get_by_id(self, db, enrollment_id):
        return self._find(enrollment_id)

    async def get_basic_info(self, db, user_id):
        enrollment = self.by_user.get(user_id)
        return copy.deepcopy(enrollment.basic_info) if enrollment else None

    async def upsert_sections(self, db, user_id, **sections):
        self.writes.append(copy.deepcopy(sections))
        now = datetime.now(UTC)
        enrollment = self.by_user.get(user_id)
        if enrollment is None:
            enrollment = Enrollment(
                id=uuid4(),
                user_id=user_id,
                status=EnrollmentStatus.DRAFT,
                created_at=now,
            )
            self.by_user[user_id] = enrollment
        for column, value in sections.items():
            setattr(enrollment, column, copy.deepcopy(value))
        enrollment.updated_at = now

    async def mark_submitted(self, db, enrollment_id):
        enrollment = self._find(enrollment_id)
        if (
            enrollment is None
            or enrollment.status != EnrollmentStatus.DRAFT
            or enrollment.archived_at is not None
        ):
            return False
        enrollment.status = EnrollmentStatus.PENDING
        enrollment.submitted_at = enrollment.submitted_at or datetime.now(UTC)
        return True

    async def set_status_if_not_archived(self, db, enrollment_id, status):
        enrollment = self._find(enrollment_id)
        if enrollment is None or enrollment.archived_at is not None:
            return False
        enrollment.status = status
        return True

    async def archive(self, db, enrollment_id, school_year, archived_at):
        enrollment = self._find(enrollment_id)
        if enrollment is None:
            return False
        enrollment.archived_at = archived_at
        enrollment.school_year = school_year
        return True

    async def delete_by_id(self, db, enrollment_id):
        enrollment = self._find(enrollment_id)
        if enrollment is None:
            return False
        del self.by_user[enrollment.user_id]
        return True


@pytest.fixture
def store():
    """In-memory repository patched into the enrollment service."""
    fake = InMemoryEnrollmentStore()
    with patch("enrollment_api.modules.enrollments.service.repository", fake):
        yield fake


@pytest.fixture
def basic_info_payload():
    return {
        "lastName": "Cruz",
        "firstName": "Ana",
        "birthdate": "2010-01-01",
        "guardianName": "Rosa Cruz",
        "guardianContact": "09171234567",
    }


@pytest.fixture
def school_background_payload():
    return {
        "elementary": [
            {
                "schoolName": "San Isidro Elementary",
                "location": "Quezon City",
                "yearFrom": "2016",
                "yearTo": "2022",
            }
        ],
        "juniorHigh": [],
        "highSchool": [],
    }


@pytest.fixture
def enrollment_id():
    return uuid4()


@pytest.fixture
def draft_enrollment(enrollment_id, student_id):
    """A DRAFT enrollment with basic info saved."""
    enrollment = MagicMock(spec=Enrollment)
    enrollment.id = enrollment_id
    enrollment.user_id = student_id
    enrollment.status = EnrollmentStatus.DRAFT
    enrollment.basic_info = {"firstName": "Ana", "lastName": "Cruz", "studentType": "new"}
    enrollment.school_background = None
    enrollment.submitted_at = None
    enrollment.archived_at = None
    enrollment.school_year = None
    enrollment.is_archived = False
    enrollment.created_at = datetime.now(UTC) - timedelta(days=2)
    enrollment.updated_at = datetime.now(UTC) - timedelta(days=1)
    return enrollment


@pytest.fixture
def pending_enrollment(draft_enrollment):
    draft_enrollment.status = EnrollmentStatus.PENDING
    draft_enrollment.submitted_at = datetime.now(UTC) - timedelta(hours=3)
    return draft_enrollment


@pytest.fixture
def archived_enrollment(pending_enrollment):
    pending_enrollment.archived_at = datetime.now(UTC) - timedelta(hours=1)
    pending_enrollment.school_year = "2025-2026"
    pending_enrollment.is_archived = True
    return pending_enrollment


def make_row(enrollment, **identity):
    """A joined admin-list row: the enrollment plus identity columns."""
    fields = {
        "email": "ana@example.com",
        "username": "ana",
        "first_name": "Ana",
        "middle_name": None,
        "last_name": "Cruz",
        "contact_no": "09171234567",
        "profile_picture_url": None,
    }
    fields.update(identity)
    return SimpleNamespace(Enrollment=enrollment, **fields)


@pytest.fixture
def row_factory():
    return make_row
