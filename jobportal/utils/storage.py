"""
Upload storage backed by GridFS.

Callers get back an opaque reference ("/files/<id>") that is stored on the
owning document as-is and served by the files router.
"""

import io
import logging
from typing import Iterable, Optional

from fastapi import UploadFile

from jobportal.config import MAX_UPLOAD_BYTES
from jobportal.database import get_fs_bucket
from jobportal.utils.errors import BadRequestError
from jobportal.utils.serializers import utcnow

logger = logging.getLogger(__name__)

RESUME_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)
IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")

FILES_PREFIX = "/files/"


async def store_upload(
    file: UploadFile,
    kind: str,
    owner_id: str,
    allowed_types: Optional[Iterable[str]] = None,
) -> str:
    """Validate and persist an upload, returning its reference."""
    if allowed_types is not None and file.content_type not in allowed_types:
        raise BadRequestError(f"Unsupported file type: {file.content_type}")

    contents = await file.read()
    if not contents:
        raise BadRequestError("No file uploaded")
    if len(contents) > MAX_UPLOAD_BYTES:
        raise BadRequestError(f"File size exceeds {MAX_UPLOAD_BYTES // (1024 * 1024)}MB limit")

    fs_bucket = get_fs_bucket()
    file_id = await fs_bucket.upload_from_stream(
        filename=file.filename or kind,
        source=io.BytesIO(contents),
        metadata={
            "kind": kind,
            "owner_id": owner_id,
            "content_type": file.content_type,
            "original_filename": file.filename,
            "uploaded_at": utcnow(),
        },
    )
    logger.info("Stored %s upload %s for %s (%d bytes)", kind, file_id, owner_id, len(contents))
    return f"{FILES_PREFIX}{file_id}"
