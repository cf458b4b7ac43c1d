"""Document schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from enrollment_api.modules.documents.models import Document


def _alias(*names: str, default: Any = None) -> Any:
    return Field(default=default, validation_alias=AliasChoices(*names))


class UploadUrlRequest(BaseModel):
    """POST /upload-url"""

    user_id: str | None = Field(
        default=None,
        max_length=128,
        validation_alias=AliasChoices("userId", "user_id"),
    )
    file_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("fileName", "file_name"),
    )
    content_type: str = Field(
        ...,
        min_length=3,
        max_length=128,
        validation_alias=AliasChoices("contentType", "content_type"),
    )
    max_size: int | None = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("maxSize", "max_size"),
    )


class DocumentCreate(BaseModel):
    """POST /documents. Required fields are checked by the service."""

    model_config = ConfigDict(extra="ignore")

    id: UUID | None = None
    name: str | None = None
    type: str | None = None
    url: str | None = None
    file_path: str | None = _alias("filePath", "file_path")
    file_size: int | None = _alias("fileSize", "file_size")
    user_id: UUID | None = _alias("userId", "user_id")
    status: str | None = None
    remarks: str | None = None
    uploaded_at: datetime | None = _alias("uploadedAt", "uploaded_at")


def serialize_document(document: Document) -> dict[str, Any]:
    """Wire representation of a document."""
    return {
        "id": str(document.id),
        "name": document.name,
        "type": document.type,
        "url": document.url,
        "filePath": document.file_path,
        "fileSize": document.file_size,
        "userId": str(document.user_id),
        "status": document.status,
        "remarks": document.remarks,
        "uploadedAt": document.uploaded_at.isoformat() if document.uploaded_at else None,
    }
