"""
Upload Service - hand ticket photos to object storage.

CivicDesk only keeps the signed URL the storage collaborator returns; the
ticket's imageUrl / proofImageUrl is that string.
"""

import os
import time
from abc import ABC, abstractmethod
from datetime import timedelta
from pathlib import Path
from typing import Dict, Optional
import logging

from civicdesk.core.errors import StorageError, ValidationFailed
from civicdesk.core.settings import settings

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_PREFIXES = ("image/", "video/")


class ObjectStorage(ABC):

    @abstractmethod
    def upload(self, name: str, data: bytes, content_type: str) -> str:
        """Store the object and return a time-limited URL for it."""
        raise NotImplementedError


class FirebaseObjectStorage(ObjectStorage):
    """Firebase Storage bucket; returns V4 signed GET URLs."""

    def __init__(self, bucket_name: Optional[str] = None, expiry_days: int = 7):
        from firebase_admin import storage
        from civicdesk.config.firebase import initialize_firebase_app

        initialize_firebase_app()
        self.bucket = storage.bucket(bucket_name or settings.FIREBASE_STORAGE_BUCKET)
        self.expiry = timedelta(days=expiry_days)

    def upload(self, name: str, data: bytes, content_type: str) -> str:
        try:
            blob = self.bucket.blob(name)
            blob.upload_from_string(data, content_type=content_type)
            return blob.generate_signed_url(version="v4", expiration=self.expiry, method="GET")
        except Exception as e:
            logger.error(f"Upload of {name} failed: {e}", exc_info=True)
            raise StorageError("Failed to upload file") from e


class LocalObjectStorage(ObjectStorage):
    """Mock-mode storage: files land in MOCK_UPLOAD_DIR, URL is a file:// URI."""

    def __init__(self, directory: str):
        self.directory = Path(directory)

    def upload(self, name: str, data: bytes, content_type: str) -> str:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path = self.directory / name
            path.write_bytes(data)
        except OSError as e:
            logger.error(f"Local upload of {name} failed: {e}")
            raise StorageError("Failed to upload file") from e
        return path.resolve().as_uri()


class UploadService:

    def __init__(self, storage: ObjectStorage, max_bytes: Optional[int] = None):
        self.storage = storage
        self.max_bytes = max_bytes if max_bytes is not None else settings.MAX_UPLOAD_BYTES

    def upload(self, user_id: str, filename: Optional[str], content_type: Optional[str], data: bytes) -> Dict[str, str]:
        """
        Validate and store one file.

        Stored name is ``<userId>_<epoch-ms>.<ext>``; ext defaults to jpg.

        Raises:
            ValidationFailed: empty file, wrong content type, or too large
        """
        if not data:
            raise ValidationFailed("No file provided")
        content_type = content_type or "application/octet-stream"
        if not content_type.startswith(ALLOWED_CONTENT_PREFIXES):
            raise ValidationFailed("Only image and video uploads are allowed")
        if len(data) > self.max_bytes:
            raise ValidationFailed(f"File exceeds {self.max_bytes // (1024 * 1024)}MB limit")

        extension = os.path.splitext(filename or "")[1].lstrip(".") or "jpg"
        stored_name = f"{user_id}_{int(time.time() * 1000)}.{extension}"
        url = self.storage.upload(stored_name, data, content_type)
        logger.info(f"File uploaded: {stored_name} ({len(data)} bytes)")
        return {"filename": stored_name, "url": url}


# Global service instance
_upload_service = None


def get_upload_service() -> UploadService:
    """Get or create UploadService singleton."""
    global _upload_service
    if _upload_service is None:
        if settings.USE_MOCK_DB:
            storage = LocalObjectStorage(settings.MOCK_UPLOAD_DIR)
        else:
            storage = FirebaseObjectStorage(expiry_days=settings.SIGNED_URL_EXPIRY_DAYS)
        _upload_service = UploadService(storage)
    return _upload_service
