"""Transient storage for uploaded accident photos.

Each upload is written under ``settings.upload_dir`` with a timestamp-based
name and removed again when the request that created it finishes.
"""
import logging
import os
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import UploadFile

from accident_gateway.config import Settings
from accident_gateway.utils.exceptions import UploadValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
}


@dataclass(frozen=True)
class StoredUpload:
    path: str
    original_filename: str
    content_type: str
    size: int

    @property
    def filename(self) -> str:
        return os.path.basename(self.path)


def _size_limit_message(settings: Settings) -> str:
    limit_mb = settings.max_upload_size_bytes / (1024 * 1024)
    return f"File too large: the maximum size is {limit_mb:g}MB"


def validate_upload(file: UploadFile | None, settings: Settings) -> UploadFile:
    """Check what the client declared about the file, before reading any of it."""
    if file is None or not file.filename:
        raise UploadValidationError("Please upload an image file")

    content_type = (file.content_type or "").lower()
    if content_type not in settings.allowed_mime_types:
        logger.info("Rejected upload %s with content type %s", file.filename, content_type)
        raise UploadValidationError("Only image files (jpeg, jpg, png) are allowed")

    if file.size is not None and file.size > settings.max_upload_size_bytes:
        raise UploadValidationError(_size_limit_message(settings))

    return file


def _unique_name(content_type: str) -> str:
    ext = _EXTENSIONS.get(content_type, "")
    return f"{time.time_ns()}-{uuid.uuid4().hex[:8]}{ext}"


async def save_upload(file: UploadFile, settings: Settings) -> StoredUpload:
    """Stream ``file`` into the upload directory, enforcing the size ceiling."""
    os.makedirs(settings.upload_dir, exist_ok=True)

    content_type = (file.content_type or "").lower()
    file_path = os.path.join(settings.upload_dir, _unique_name(content_type))

    size = 0
    try:
        with open(file_path, "wb") as f:
            while chunk := await file.read(CHUNK_SIZE):
                size += len(chunk)
                if size > settings.max_upload_size_bytes:
                    raise UploadValidationError(_size_limit_message(settings))
                f.write(chunk)
    except BaseException:
        remove_upload(file_path)
        raise

    logger.info("Stored upload %s as %s (%d bytes)", file.filename, file_path, size)
    return StoredUpload(
        path=file_path,
        original_filename=file.filename or "",
        content_type=content_type,
        size=size,
    )


def remove_upload(file_path: str) -> None:
    try:
        os.remove(file_path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error("Could not delete transient file %s: %s", file_path, e)


@asynccontextmanager
async def transient_upload(file: UploadFile | None, settings: Settings) -> AsyncIterator[StoredUpload]:
    """Validate and store ``file``; the stored copy is deleted on every exit path."""
    stored = await save_upload(validate_upload(file, settings), settings)
    try:
        yield stored
    finally:
        remove_upload(stored.path)
        logger.debug("Removed transient file %s", stored.path)
