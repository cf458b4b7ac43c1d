"""
Object Storage (S3)

Signs short-lived upload URLs for documents and deletes stored objects.
boto3 is synchronous, so calls run in a worker thread like the Resend client.
"""

import asyncio
import logging
import re
import time
import uuid
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from enrollment_api.core.config import settings
from enrollment_api.core.exceptions import ServiceError

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")
MAX_SAFE_FILENAME_LENGTH = 200


class ObjectStorageError(ServiceError):
    """Raised when the object store cannot sign or perform a request."""

    def __init__(self, message: str = "Upload service unavailable"):
        super().__init__(
            message=message,
            error_code="OBJECT_STORAGE_UNAVAILABLE",
            status_code=503,
        )


@dataclass(frozen=True)
class UploadTarget:
    """A signed write URL plus where the object will be readable afterwards."""

    write_url: str
    read_url: str
    object_key: str


def safe_filename(file_name: str) -> str:
    """Replace characters outside [a-zA-Z0-9._-] and cap the length."""
    return _UNSAFE_FILENAME_CHARS.sub("_", file_name)[:MAX_SAFE_FILENAME_LENGTH]


def build_object_key(owner_id: str | None, file_name: str) -> str:
    """``documents/<owner>/<epoch_ms>_<uuid>_<safe name>``"""
    owner = owner_id or "anon"
    return f"documents/{owner}/{int(time.time() * 1000)}_{uuid.uuid4()}_{safe_filename(file_name)}"


class ObjectStorage:
    """Thin async wrapper around an S3 bucket."""

    def __init__(
        self,
        bucket: str,
        region: str,
        *,
        upload_expire_seconds: int = 300,
        client=None,
    ):
        self.bucket = bucket
        self.region = region
        self.upload_expire_seconds = upload_expire_seconds
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                config=Config(signature_version="s3v4"),
            )
        return self._client

    def public_url(self, object_key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quote(object_key, safe='')}"

    async def create_upload_target(
        self,
        owner_id: str | None,
        file_name: str,
        content_type: str,
    ) -> UploadTarget:
        """
        Sign a private PUT URL for a new object.

        Raises:
            ObjectStorageError: If the bucket is not configured or signing fails
        """
        if not self.bucket:
            logger.error("S3 bucket is not configured")
            raise ObjectStorageError()

        object_key = build_object_key(owner_id, file_name)
        params = {
            "Bucket": self.bucket,
            "Key": object_key,
            "ContentType": content_type,
            "ACL": "private",
        }

        try:
            write_url = await asyncio.to_thread(
                self.client.generate_presigned_url,
                "put_object",
                Params=params,
                ExpiresIn=self.upload_expire_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to sign upload URL: {e}")
            raise ObjectStorageError() from e

        logger.info(f"Signed upload URL for object {object_key}")
        return UploadTarget(
            write_url=write_url,
            read_url=self.public_url(object_key),
            object_key=object_key,
        )

    async def delete_object(self, object_key: str) -> bool:
        """
        Delete an object.

        Returns:
            True if deleted, False if it did not exist

        Raises:
            ObjectStorageError: On any other failure
        """
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=object_key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("NoSuchKey", "404", "NotFound"):
                return False
            raise ObjectStorageError(f"Failed to delete object: {code}") from e
        except BotoCoreError as e:
            raise ObjectStorageError(f"Failed to delete object: {e}") from e

        logger.info(f"Deleted object {object_key}")
        return True


@lru_cache
def get_object_storage() -> ObjectStorage:
    """FastAPI dependency returning the process-wide storage client."""
    return ObjectStorage(
        settings.s3_bucket,
        settings.aws_region,
        upload_expire_seconds=settings.upload_url_expire_seconds,
    )
