"""
Enrollment Models

One enrollment record per user. The two form sections (basic info and school
background) are stored as independent JSON documents so each can be written
without touching the other.
"""

import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from enrollment_api.modules.shared import BaseModel


class EnrollmentStatus(str, enum.Enum):
    """Review status of an enrollment."""

    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Enrollment(BaseModel):
    """
    A student's enrollment application.

    Lifecycle:
    - Created as DRAFT by the first basic-info or school-background write
    - DRAFT -> PENDING when the student submits (sets submitted_at once)
    - Registrars move it freely among the four statuses
    - Archiving (archived_at + school_year) makes the status read-only
    """

    __tablename__ = "enrollments"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    status: Mapped[EnrollmentStatus] = mapped_column(
        Enum(
            EnrollmentStatus,
            name="enrollment_status",
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
        nullable=False,
        default=EnrollmentStatus.DRAFT,
    )

    # Form sections (camelCase keys, see merge.py)
    basic_info: Mapped[Any | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    school_background: Mapped[Any | None] = mapped_column(JSON(none_as_null=True), nullable=True)

    # Set once on draft -> pending
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Archival (set together, never cleared)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    school_year: Mapped[str | None] = mapped_column(String(20), nullable=True)

    __table_args__ = (
        Index("ix_enrollments_status", "status"),
        Index("ix_enrollments_archived_at", "archived_at"),
        Index("ix_enrollments_school_year", "school_year"),
    )

    def __repr__(self) -> str:
        return f"<Enrollment(id={self.id}, user_id={self.user_id}, status={self.status.value})>"

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None
