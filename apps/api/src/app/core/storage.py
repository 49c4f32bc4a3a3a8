"""
Verification File Storage

Validates uploaded organization verification documents, stores them on
local disk and returns the metadata persisted with the approval ticket.
Validation and storage are separate steps: registration validates the
file before the one-time code is redeemed and stores it afterwards.
"""

import asyncio
import logging
import secrets
from pathlib import Path

from fastapi import UploadFile

from app.core.config import settings

logger = logging.getLogger(__name__)

ALLOWED_VERIFICATION_MIMETYPES = {
    "application/pdf",
    "image/jpeg",
    "image/jpg",
    "image/png",
}


class FileValidationError(ValueError):
    """Raised when an upload is too large or of a disallowed type."""


def _write_bytes(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


async def validate_verification_file(upload: UploadFile, max_size: int) -> bytes:
    """
    Check a verification document's type and size without storing it.

    Args:
        upload: The uploaded file
        max_size: Maximum size in bytes (platform setting)

    Returns:
        The file content, ready for store_verification_file()

    Raises:
        FileValidationError: If the type is not allowed or the file is too large
    """
    mimetype = upload.content_type or "application/octet-stream"
    if mimetype not in ALLOWED_VERIFICATION_MIMETYPES:
        raise FileValidationError("Only PDF, JPG and PNG files are allowed")

    content = await upload.read()
    if len(content) > max_size:
        raise FileValidationError(
            f"File too large. Maximum size is {max_size // (1024 * 1024)}MB"
        )
    return content


async def store_verification_file(upload: UploadFile, content: bytes) -> dict:
    """
    Write already-validated content under a random name.

    Returns:
        Metadata dict: filename, original_name, mimetype, size, path, url
    """
    original_name = upload.filename or "verification"
    suffix = Path(original_name).suffix.lower()
    filename = f"verification-{secrets.token_hex(12)}{suffix}"
    path = Path(settings.upload_dir) / "verification" / filename

    await asyncio.to_thread(_write_bytes, path, content)
    logger.info(f"Stored verification file {filename} ({len(content)} bytes)")

    return {
        "filename": filename,
        "original_name": original_name,
        "mimetype": upload.content_type or "application/octet-stream",
        "size": len(content),
        "path": str(path),
        "url": f"{settings.public_upload_url.rstrip('/')}/verification/{filename}",
    }
