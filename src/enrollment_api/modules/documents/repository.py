"""
Document Repository

Database operations for document metadata.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_api.modules.documents.models import Document


async def create(
    db: AsyncSession,
    *,
    name: str,
    url: str,
    user_id: UUID,
    document_id: UUID | None = None,
    type: str | None = None,
    file_path: str | None = None,
    file_size: int | None = None,
    status: str = "pending",
    remarks: str = "",
    uploaded_at: datetime | None = None,
) -> Document:
    """Create a document record."""
    document = Document(
        name=name,
        url=url,
        user_id=user_id,
        type=type,
        file_path=file_path,
        file_size=file_size,
        status=status,
        remarks=remarks,
    )
    if document_id is not None:
        document.id = document_id
    if uploaded_at is not None:
        document.uploaded_at = uploaded_at

    db.add(document)
    await db.commit()
    await db.refresh(document)
    return document


async def get_by_id(db: AsyncSession, document_id: UUID) -> Document | None:
    return await db.get(Document, document_id)


async def list_by_user(db: AsyncSession, user_id: UUID) -> list[Document]:
    """A user's documents, newest upload first."""
    result = await db.execute(
        select(Document).where(Document.user_id == user_id).order_by(Document.uploaded_at.desc())
    )
    return list(result.scalars().all())


async def delete_by_id(db: AsyncSession, document_id: UUID) -> bool:
    """Delete a document record. Returns True if a row was removed."""
    result = await db.execute(delete(Document).where(Document.id == document_id))
    await db.commit()
    return result.rowcount > 0
