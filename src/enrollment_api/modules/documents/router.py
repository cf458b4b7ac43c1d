"""
Documents Router

Endpoints:
- POST /upload-url - Sign an S3 upload URL
- POST /documents - Register an uploaded document
- GET /documents/{user_id} - List a user's documents
- DELETE /documents/{document_id} - Delete a document
- GET /admin/documents/{user_id} - List any user's documents (admin)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_api.core.auth import CurrentUser, get_current_admin_user, get_current_user
from enrollment_api.core.database import get_db
from enrollment_api.core.storage import ObjectStorage, get_object_storage
from enrollment_api.modules.documents import service
from enrollment_api.modules.documents.schemas import DocumentCreate, UploadUrlRequest
from enrollment_api.modules.shared import ok

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()


@router.post("/upload-url", summary="Create Upload URL")
async def create_upload_url(
    data: UploadUrlRequest,
    user: CurrentUser = Depends(get_current_user),
    storage: ObjectStorage = Depends(get_object_storage),
) -> dict:
    """
    Sign a PUT URL valid for 5 minutes.

    Allowed types: PDF, JPEG, PNG, GIF, DOC and DOCX.
    """
    return ok(await service.create_upload_url(storage, user, data))


@router.post("/documents", summary="Register Document")
async def create_document(
    data: DocumentCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return ok(await service.create_document(db, user, data))


@router.get("/documents/{user_id}", summary="List Documents")
async def list_documents(
    user_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return ok(await service.list_documents(db, user, user_id))


@router.delete("/documents/{document_id}", summary="Delete Document")
async def delete_document(
    document_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
) -> dict:
    await service.delete_document(db, storage, user, document_id)
    return ok(message="Document deleted")


@admin_router.get("/documents/{user_id}", summary="List Documents (Admin)")
async def admin_list_documents(
    user_id: UUID,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return ok(await service.list_documents(db, admin, user_id))
