"""
Enrollment Service Layer

Business logic for the enrollment lifecycle.

This module implements:
1. Form persistence:
   - Basic info and school background are independent sections; saving one
     never changes the other
   - The first save of either section creates the DRAFT record
   - studentType lives in basic info but can also be set from the school
     background step; once "transferee" it is kept when a save omits it

2. Submission:
   - DRAFT -> PENDING exactly once; submitted_at is stamped by that
     transition and never changes afterwards

3. Registrar review:
   - Status may be set to any of draft/pending/approved/rejected
   - Archiving tags the record with a school year and locks its status

4. Admin views:
   - Active list, detail, archive list, school-year tabs and dashboard stats

Concurrency:
- Section writes are single upserts. The studentType read-merge-write is not
  transactional, so two concurrent saves by the same student resolve as
  last-write-wins.
- The archive lock is checked in the same UPDATE that sets the status.
"""

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Row
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_api.core.exceptions import (
    ConflictError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from enrollment_api.modules.enrollments import merge, repository
from enrollment_api.modules.enrollments.models import Enrollment, EnrollmentStatus
from enrollment_api.modules.enrollments.schemas import BasicInfoRequest, SchoolBackgroundRequest

logger = logging.getLogger(__name__)

# Statuses a registrar may set directly. Order is used in error messages.
ADMIN_SETTABLE_STATUSES: tuple[EnrollmentStatus, ...] = (
    EnrollmentStatus.PENDING,
    EnrollmentStatus.APPROVED,
    EnrollmentStatus.REJECTED,
    EnrollmentStatus.DRAFT,
)

# Transitions a student may trigger
STUDENT_TRANSITIONS: dict[EnrollmentStatus, set[EnrollmentStatus]] = {
    EnrollmentStatus.DRAFT: {EnrollmentStatus.PENDING},
    EnrollmentStatus.PENDING: set(),
    EnrollmentStatus.APPROVED: set(),
    EnrollmentStatus.REJECTED: set(),
}

INVALID_STATUS_MESSAGE = "status must be one of: " + ", ".join(
    status.value for status in ADMIN_SETTABLE_STATUSES
)


class EnrollmentNotFoundError(NotFoundError):
    """Raised when an enrollment is not found."""

    def __init__(self, message: str = "Enrollment not found"):
        super().__init__(message)


class EnrollmentNotStartedError(ServiceError):
    """Raised when submitting before any section was saved."""

    def __init__(self):
        super().__init__(
            message="No enrollment record found. Complete Basic Info first.",
            error_code="ENROLLMENT_NOT_STARTED",
            status_code=400,
        )


class AlreadySubmittedError(ConflictError):
    """Raised when submitting an enrollment that is no longer a draft."""

    def __init__(self):
        super().__init__(
            message="Application already submitted.",
            error_code="ALREADY_SUBMITTED",
            status_code=400,
        )


class EnrollmentArchivedError(ConflictError):
    """Raised when changing the status of an archived (read-only) enrollment."""

    def __init__(self, action: str = "update status"):
        super().__init__(
            message=f"Cannot {action}: enrollment is archived (read-only).",
            error_code="ENROLLMENT_ARCHIVED",
            status_code=400,
        )


# ============================================
# Student operations
# ============================================


async def save_basic_info(
    db: AsyncSession,
    user_id: UUID,
    data: BasicInfoRequest,
) -> dict[str, str]:
    """
    Save the basic-info section.

    Returns:
        The stored basic-info document

    Raises:
        ValidationError: A required field is blank. Nothing is written.
    """
    values = data.document_values()
    if merge.missing_basic_info_fields(values):
        raise ValidationError(merge.MISSING_BASIC_INFO_MESSAGE)

    stored = merge.parse_json_document(await repository.get_basic_info(db, user_id))
    student_type = merge.resolve_student_type(data.student_type, stored)
    basic_info = merge.build_basic_info(values, student_type)

    await repository.upsert_sections(db, user_id, basic_info=basic_info)

    logger.info(f"Saved basic info for user {user_id} (studentType={student_type})")
    return basic_info


async def save_school_background(
    db: AsyncSession,
    user_id: UUID,
    data: SchoolBackgroundRequest,
) -> dict[str, list[dict[str, str]]]:
    """
    Save the school-background section.

    When ``studentType`` is a string it is merged into the stored basic info
    in the same write; no other basic-info key changes.

    Returns:
        The stored school-background document
    """
    school_background = merge.build_school_background(data.levels())
    sections: dict[str, Any] = {"school_background": school_background}

    if isinstance(data.student_type, str):
        stored = merge.parse_json_document(await repository.get_basic_info(db, user_id))
        sections["basic_info"] = merge.with_student_type(stored, data.student_type)

    await repository.upsert_sections(db, user_id, **sections)

    logger.info(
        f"Saved school background for user {user_id}: "
        + ", ".join(f"{level}={len(school_background[level])}" for level in merge.SCHOOL_LEVELS)
    )
    return school_background


def _record_view(enrollment: Enrollment) -> dict[str, Any]:
    basic_info = (
        merge.parse_json_document(enrollment.basic_info)
        if enrollment.basic_info is not None
        else None
    )
    return {
        "id": enrollment.id,
        "user_id": enrollment.user_id,
        "status": enrollment.status.value,
        "basic_info": basic_info,
        "school_background": merge.read_school_background(enrollment.school_background),
        "submitted_at": enrollment.submitted_at,
        "archived_at": enrollment.archived_at,
        "school_year": enrollment.school_year,
        "created_at": enrollment.created_at,
        "updated_at": enrollment.updated_at,
    }


async def get_enrollment(db: AsyncSession, user_id: UUID) -> dict[str, Any] | None:
    """The caller's enrollment, or None if nothing has been saved yet."""
    enrollment = await repository.get_by_user_id(db, user_id)
    if enrollment is None:
        return None
    return _record_view(enrollment)


async def submit_enrollment(db: AsyncSession, user_id: UUID) -> dict[str, str]:
    """
    Submit the caller's enrollment for review (DRAFT -> PENDING).

    Raises:
        EnrollmentNotStartedError: No section has been saved
        EnrollmentArchivedError: The record is archived
        AlreadySubmittedError: The record is not a draft
    """
    enrollment = await repository.get_by_user_id(db, user_id)
    if enrollment is None:
        raise EnrollmentNotStartedError()
    if enrollment.is_archived:
        raise EnrollmentArchivedError("submit")
    if EnrollmentStatus.PENDING not in STUDENT_TRANSITIONS.get(enrollment.status, set()):
        raise AlreadySubmittedError()

    # Guarded on DRAFT in the UPDATE itself; a concurrent submit loses here
    if not await repository.mark_submitted(db, enrollment.id):
        raise AlreadySubmittedError()

    logger.info(f"Enrollment {enrollment.id} submitted by user {user_id}")
    return {"status": EnrollmentStatus.PENDING.value}


# ============================================
# Admin operations
# ============================================


def parse_status(value: Any) -> EnrollmentStatus:
    """
    Parse a status a registrar may set.

    Raises:
        ValidationError: Not one of the settable statuses
    """
    if isinstance(value, str):
        for status in ADMIN_SETTABLE_STATUSES:
            if status.value == value:
                return status
    raise ValidationError(INVALID_STATUS_MESSAGE)


def _summary(row: Row) -> dict[str, Any]:
    enrollment: Enrollment = row.Enrollment
    return {
        "id": enrollment.id,
        "user_id": enrollment.user_id,
        "status": enrollment.status.value,
        "studentName": merge.student_display_name(
            row.first_name, row.middle_name, row.last_name, row.username, row.email
        ),
        "email": row.email,
        "contact_no": row.contact_no,
        "submitted_at": enrollment.submitted_at,
        "created_at": enrollment.created_at,
        "updated_at": enrollment.updated_at,
        "basic_info": merge.parse_json_document(enrollment.basic_info),
    }


def _archived_summary(row: Row) -> dict[str, Any]:
    enrollment: Enrollment = row.Enrollment
    return {
        **_summary(row),
        "archived_at": enrollment.archived_at,
        "school_year": enrollment.school_year,
    }


async def admin_list_enrollments(
    db: AsyncSession,
    status: str | None = None,
) -> list[dict[str, Any]]:
    """
    Active (non-archived) enrollments for the review queue.

    Raises:
        ValidationError: ``status`` is given but is not a known status
    """
    status_filter = parse_status(status) if status else None
    rows = await repository.list_active(db, status_filter)
    return [_summary(row) for row in rows]


async def admin_get_enrollment_detail(db: AsyncSession, enrollment_id: UUID) -> dict[str, Any]:
    """
    Full enrollment with the owner's identity, archived or not.

    Raises:
        EnrollmentNotFoundError: No such enrollment
    """
    row = await repository.get_detail(db, enrollment_id)
    if row is None:
        raise EnrollmentNotFoundError()

    enrollment: Enrollment = row.Enrollment
    return {
        "id": enrollment.id,
        "user_id": enrollment.user_id,
        "status": enrollment.status.value,
        "studentName": merge.student_display_name(
            row.first_name, row.middle_name, row.last_name, row.username, row.email
        ),
        "email": row.email,
        "username": row.username,
        "contact_no": row.contact_no,
        "profile_picture_url": row.profile_picture_url,
        "basic_info": merge.parse_json_document(enrollment.basic_info),
        "school_background": merge.read_school_background(enrollment.school_background),
        "submitted_at": enrollment.submitted_at,
        "archived_at": enrollment.archived_at,
        "school_year": enrollment.school_year,
        "created_at": enrollment.created_at,
        "updated_at": enrollment.updated_at,
    }


async def admin_set_status(
    db: AsyncSession,
    enrollment_id: UUID,
    status: Any,
    admin_id: UUID | None = None,
) -> dict[str, str]:
    """
    Set an enrollment's status directly.

    submitted_at is not touched; only the student's submit sets it.

    Raises:
        ValidationError: Unknown status
        EnrollmentArchivedError: The record is archived
        EnrollmentNotFoundError: No such enrollment
    """
    new_status = parse_status(status)

    if not await repository.set_status_if_not_archived(db, enrollment_id, new_status):
        # No row matched: tell "missing" apart from "archived"
        existing = await repository.get_by_id(db, enrollment_id)
        if existing is None:
            raise EnrollmentNotFoundError()
        raise EnrollmentArchivedError()

    logger.info(f"Enrollment {enrollment_id} status set to {new_status.value} by admin {admin_id}")
    return {"status": new_status.value}


async def admin_archive_enrollment(
    db: AsyncSession,
    enrollment_id: UUID,
    school_year: Any,
    admin_id: UUID | None = None,
) -> dict[str, str]:
    """
    Archive an enrollment under a school year. Archiving again relabels it.

    Raises:
        ValidationError: Blank school year
        EnrollmentNotFoundError: No such enrollment
    """
    label = school_year.strip() if isinstance(school_year, str) else ""
    if not label:
        raise ValidationError('school_year is required (e.g. "2025-2026")')

    archived_at = datetime.now(UTC)
    if not await repository.archive(db, enrollment_id, label, archived_at):
        raise EnrollmentNotFoundError()

    logger.info(f"Enrollment {enrollment_id} archived for {label} by admin {admin_id}")
    return {"archived_at": archived_at.isoformat(), "school_year": label}


async def admin_delete_enrollment(
    db: AsyncSession,
    enrollment_id: UUID,
    admin_id: UUID | None = None,
) -> None:
    """
    Delete an enrollment. The owner's account is kept.

    Raises:
        EnrollmentNotFoundError: No such enrollment
    """
    if not await repository.delete_by_id(db, enrollment_id):
        raise EnrollmentNotFoundError()
    logger.info(f"Enrollment {enrollment_id} deleted by admin {admin_id}")


async def admin_list_archived(
    db: AsyncSession,
    school_year: str | None = None,
) -> list[dict[str, Any]]:
    rows = await repository.list_archived(db, (school_year or "").strip() or None)
    return [_archived_summary(row) for row in rows]


async def admin_list_school_years(db: AsyncSession) -> list[str]:
    return await repository.list_school_years(db)


async def admin_get_stats(db: AsyncSession, today: datetime | None = None) -> dict[str, Any]:
    """
    Dashboard statistics over non-archived enrollments.

    Returns:
        Dict with:
        - total, pending, approved, rejected, draft: counts by status
        - enrollingNow: same as pending
        - gender: {male, female, other}
        - byDate: 30 consecutive days ending today (UTC), oldest first,
          zero-filled, keyed by submission date (creation date for drafts)
    """
    today_date = (today or datetime.now(UTC)).date()

    by_status = await repository.count_by_status(db)
    stats: dict[str, Any] = {"total": sum(by_status.values())}
    for status in ADMIN_SETTABLE_STATUSES:
        stats[status.value] = by_status.get(status, 0)
    stats["enrollingNow"] = stats[EnrollmentStatus.PENDING.value]

    stats["gender"] = merge.gender_breakdown(await repository.count_by_gender(db))

    since = merge.stats_window_start(today_date)
    by_day = await repository.count_by_activity_date(db, since)
    stats["byDate"] = merge.daily_series(by_day, today_date)

    return stats
