"""
Document Service Layer

Upload URL signing and document metadata.

Flow:
1. The client asks for a signed upload URL (content type whitelisted)
2. The client PUTs the file straight to S3
3. The client registers the document's metadata here
4. Deleting a document removes the record; the stored object is removed on a
   best-effort basis and a storage failure never fails the request

Access: students may only act on their own documents; admins on any.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_api.core.auth import CurrentUser
from enrollment_api.core.config import settings
from enrollment_api.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from enrollment_api.core.storage import ObjectStorage, ObjectStorageError
from enrollment_api.modules.documents import repository
from enrollment_api.modules.documents.schemas import (
    DocumentCreate,
    UploadUrlRequest,
    serialize_document,
)

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "image/jpeg",
        "image/png",
        "image/gif",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)


class DocumentNotFoundError(NotFoundError):
    """Raised when a document is not found."""

    def __init__(self):
        super().__init__("Document not found")


def ensure_owner_access(user: CurrentUser, owner_id: UUID | str) -> None:
    """
    Allow admins, or the owner themself.

    Raises:
        AuthorizationError: A student acting on someone else's documents
    """
    if user.is_admin or str(owner_id) == str(user.id):
        return
    logger.warning(f"User {user.id} denied access to documents of {owner_id}")
    raise AuthorizationError("You can only access your own documents")


async def create_upload_url(
    storage: ObjectStorage,
    user: CurrentUser,
    data: UploadUrlRequest,
) -> dict[str, str]:
    """
    Sign a 5-minute upload URL for a new document.

    Returns:
        ``{"url": signed PUT URL, "publicUrl": read URL, "key": object key}``

    Raises:
        ValidationError: Content type not allowed or requested size too large
        AuthorizationError: Uploading under another user's id
        ObjectStorageError: Signing failed (503)
    """
    if data.content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationError("Content type not allowed")

    max_size = data.max_size or settings.upload_default_max_size_bytes
    if max_size > settings.upload_max_size_bytes:
        raise ValidationError("Requested maxSize too large")

    owner_id = data.user_id or str(user.id)
    ensure_owner_access(user, owner_id)

    target = await storage.create_upload_target(owner_id, data.file_name, data.content_type)
    return {"url": target.write_url, "publicUrl": target.read_url, "key": target.object_key}


async def create_document(
    db: AsyncSession,
    user: CurrentUser,
    data: DocumentCreate,
) -> dict[str, str]:
    """
    Register an uploaded document.

    Raises:
        ValidationError: Missing name/url/userId or file too large
        AuthorizationError: Registering a document for another user
    """
    if not data.name or not data.url or data.user_id is None:
        raise ValidationError("name, url, and userId are required")
    if data.file_size is not None and data.file_size > settings.upload_max_size_bytes:
        raise ValidationError("file too large")

    ensure_owner_access(user, data.user_id)

    document = await repository.create(
        db,
        document_id=data.id,
        name=data.name,
        url=data.url,
        user_id=data.user_id,
        type=data.type,
        file_path=data.file_path,
        file_size=data.file_size,
        status=data.status or "pending",
        remarks=data.remarks or "",
        uploaded_at=data.uploaded_at,
    )

    logger.info(f"Document {document.id} registered for user {document.user_id}")
    return {"id": str(document.id), "name": document.name}


async def list_documents(
    db: AsyncSession,
    user: CurrentUser,
    owner_id: UUID,
) -> list[dict[str, Any]]:
    """A user's documents, newest first."""
    ensure_owner_access(user, owner_id)
    documents = await repository.list_by_user(db, owner_id)
    return [serialize_document(document) for document in documents]


async def delete_document(
    db: AsyncSession,
    storage: ObjectStorage,
    user: CurrentUser,
    document_id: UUID,
) -> None:
    """
    Delete a document and, best-effort, its stored object.

    Raises:
        DocumentNotFoundError: No such document
        AuthorizationError: Deleting another user's document
    """
    document = await repository.get_by_id(db, document_id)
    if document is None:
        raise DocumentNotFoundError()
    ensure_owner_access(user, document.user_id)

    if document.file_path:
        try:
            removed = await storage.delete_object(document.file_path)
            if not removed:
                logger.info(f"Stored object for document {document_id} was already gone")
        except ObjectStorageError as e:
            logger.warning(f"Failed to delete stored object for document {document_id}: {e}")

    await repository.delete_by_id(db, document_id)
    logger.info(f"Document {document_id} deleted by user {user.id}")
