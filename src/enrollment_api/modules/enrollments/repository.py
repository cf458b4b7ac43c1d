"""
Enrollment Repository

Database operations for enrollment records and the admin views built on them.

Design Principles:
- All queries are parameterized (no SQL injection)
- Single responsibility - only database operations, no business logic
- Each form section is written with a column-level upsert so a write to one
  section never replaces the other
- State guards (draft-only submit, archive lock) are part of the UPDATE's
  WHERE clause; callers learn whether a row matched from the return value
"""

from datetime import UTC, date, datetime, time
from typing import Any
from uuid import UUID

from sqlalchemy import Row, delete, func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_api.modules.enrollments.models import Enrollment, EnrollmentStatus
from enrollment_api.modules.users.models import User

# Identity columns joined onto admin list rows
_IDENTITY_COLUMNS = (
    User.email,
    User.username,
    User.first_name,
    User.middle_name,
    User.last_name,
    User.contact_no,
)


async def get_by_user_id(db: AsyncSession, user_id: UUID) -> Enrollment | None:
    """Get the enrollment owned by a user."""
    result = await db.execute(select(Enrollment).where(Enrollment.user_id == user_id))
    return result.scalar_one_or_none()


async def get_by_id(db: AsyncSession, enrollment_id: UUID) -> Enrollment | None:
    """Get an enrollment by ID."""
    return await db.get(Enrollment, enrollment_id)


async def get_basic_info(db: AsyncSession, user_id: UUID) -> Any:
    """Stored basic-info document for a user, as read from the column (may be None)."""
    result = await db.execute(select(Enrollment.basic_info).where(Enrollment.user_id == user_id))
    return result.scalar_one_or_none()


async def upsert_sections(db: AsyncSession, user_id: UUID, **sections: Any) -> None:
    """
    Write the given form sections for a user in one statement.

    Creates the DRAFT record if the user has none; otherwise only the named
    columns (plus updated_at) change.

    Args:
        db: Database session
        user_id: Owner of the enrollment
        **sections: ``basic_info`` and/or ``school_background`` documents
    """
    stmt = insert(Enrollment).values(
        user_id=user_id,
        status=EnrollmentStatus.DRAFT,
        **sections,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[Enrollment.user_id],
        set_={**sections, "updated_at": func.now()},
    )
    await db.execute(stmt)
    await db.commit()


async def mark_submitted(db: AsyncSession, enrollment_id: UUID) -> bool:
    """
    Move a DRAFT, non-archived enrollment to PENDING and stamp submitted_at
    unless an earlier submit already did.

    Returns:
        True if the record was in DRAFT and has been submitted
    """
    result = await db.execute(
        update(Enrollment)
        .where(
            Enrollment.id == enrollment_id,
            Enrollment.status == EnrollmentStatus.DRAFT,
            Enrollment.archived_at.is_(None),
        )
        .values(
            status=EnrollmentStatus.PENDING,
            submitted_at=func.coalesce(Enrollment.submitted_at, func.now()),
        )
    )
    await db.commit()
    return result.rowcount > 0


async def set_status_if_not_archived(
    db: AsyncSession,
    enrollment_id: UUID,
    status: EnrollmentStatus,
) -> bool:
    """
    Set the status of a non-archived enrollment.

    Returns:
        True if a non-archived record matched. False means the record is
        missing or archived.
    """
    result = await db.execute(
        update(Enrollment)
        .where(Enrollment.id == enrollment_id, Enrollment.archived_at.is_(None))
        .values(status=status)
    )
    await db.commit()
    return result.rowcount > 0


async def archive(
    db: AsyncSession,
    enrollment_id: UUID,
    school_year: str,
    archived_at: datetime,
) -> bool:
    """
    Archive an enrollment under a school-year label.

    Returns:
        True if the record exists
    """
    result = await db.execute(
        update(Enrollment)
        .where(Enrollment.id == enrollment_id)
        .values(archived_at=archived_at, school_year=school_year)
    )
    await db.commit()
    return result.rowcount > 0


async def delete_by_id(db: AsyncSession, enrollment_id: UUID) -> bool:
    """Delete an enrollment. Returns True if a row was removed."""
    result = await db.execute(delete(Enrollment).where(Enrollment.id == enrollment_id))
    await db.commit()
    return result.rowcount > 0


# ============================================
# Admin views
# ============================================


async def list_active(db: AsyncSession, status: EnrollmentStatus | None = None) -> list[Row]:
    """
    Non-archived enrollments joined with their owner's identity fields.

    Ordered by submission time (drafts last), then last update, newest first.
    Each row exposes ``Enrollment`` plus the identity columns by name.
    """
    query = (
        select(Enrollment, *_IDENTITY_COLUMNS)
        .outerjoin(User, User.id == Enrollment.user_id)
        .where(Enrollment.archived_at.is_(None))
    )
    if status is not None:
        query = query.where(Enrollment.status == status)

    query = query.order_by(
        Enrollment.submitted_at.desc().nulls_last(),
        Enrollment.updated_at.desc(),
    )
    result = await db.execute(query)
    return list(result.all())


async def list_archived(db: AsyncSession, school_year: str | None = None) -> list[Row]:
    """Archived enrollments, optionally for one school year, most recently archived first."""
    query = (
        select(Enrollment, *_IDENTITY_COLUMNS)
        .outerjoin(User, User.id == Enrollment.user_id)
        .where(Enrollment.archived_at.is_not(None))
    )
    if school_year:
        query = query.where(Enrollment.school_year == school_year)

    query = query.order_by(
        Enrollment.archived_at.desc(),
        Enrollment.submitted_at.desc().nulls_last(),
    )
    result = await db.execute(query)
    return list(result.all())


async def get_detail(db: AsyncSession, enrollment_id: UUID) -> Row | None:
    """One enrollment with identity fields including the profile picture."""
    result = await db.execute(
        select(Enrollment, *_IDENTITY_COLUMNS, User.profile_picture_url)
        .outerjoin(User, User.id == Enrollment.user_id)
        .where(Enrollment.id == enrollment_id)
    )
    return result.one_or_none()


async def list_school_years(db: AsyncSession) -> list[str]:
    """Distinct non-empty school-year labels of archived enrollments, descending."""
    result = await db.execute(
        select(Enrollment.school_year)
        .where(
            Enrollment.archived_at.is_not(None),
            Enrollment.school_year.is_not(None),
            Enrollment.school_year != "",
        )
        .distinct()
        .order_by(Enrollment.school_year.desc())
    )
    return list(result.scalars().all())


async def count_by_status(db: AsyncSession) -> dict[EnrollmentStatus, int]:
    """Number of non-archived enrollments per status."""
    result = await db.execute(
        select(Enrollment.status, func.count())
        .where(Enrollment.archived_at.is_(None))
        .group_by(Enrollment.status)
    )
    return {status: count for status, count in result.all()}


async def count_by_gender(db: AsyncSession) -> list[tuple[str, int]]:
    """
    (normalized gender, count) for non-archived enrollments with basic info.

    The gender is lower-cased and trimmed in the database; a missing value
    reads as "".
    """
    gender = func.lower(func.trim(func.coalesce(Enrollment.basic_info["gender"].astext, "")))
    result = await db.execute(
        select(gender.label("gender"), func.count())
        .where(Enrollment.archived_at.is_(None), Enrollment.basic_info.is_not(None))
        .group_by("gender")
    )
    return [(row[0], row[1]) for row in result.all()]


async def count_by_activity_date(db: AsyncSession, since: date) -> dict[date, int]:
    """
    Non-archived enrollments per UTC day of activity since ``since``.

    Activity is the submission time, or the creation time for drafts.
    """
    activity_at = func.coalesce(Enrollment.submitted_at, Enrollment.created_at)
    day = func.date(func.timezone("UTC", activity_at))
    since_at = datetime.combine(since, time.min, tzinfo=UTC)

    result = await db.execute(
        select(day.label("day"), func.count())
        .where(Enrollment.archived_at.is_(None), activity_at >= since_at)
        .group_by("day")
    )
    return {row[0]: row[1] for row in result.all()}
