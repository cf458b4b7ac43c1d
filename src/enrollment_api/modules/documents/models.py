"""
Document Models

Metadata for files uploaded to object storage. A document belongs to a user
and has no link to the enrollment lifecycle.
"""

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from enrollment_api.core.database import Base


class Document(Base):
    """An uploaded file, stored in S3 under ``file_path``."""

    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    file_path: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Review fields
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    remarks: Mapped[str] = mapped_column(Text, nullable=False, default="")

    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("ix_documents_user_id_uploaded_at", "user_id", "uploaded_at"),)

    def __repr__(self) -> str:
        return f"<Document(id={self.id}, name={self.name}, user_id={self.user_id})>"
