"""
Image uploads

Files are written under UPLOAD_DIR and served by the app at /uploads.
"""
import time
import logging
import secrets
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, UploadFile, status

from storefront.core.config import settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

UPLOAD_URL_PREFIX = "/uploads"


def upload_dir() -> Path:
    path = Path(settings.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


async def save_image(file: UploadFile, field_name: str = "image") -> str:
    """
    Validate and store an uploaded image.

    Returns:
        Public URL path of the stored file, e.g. /uploads/image-1718000000000-1a2b3c.png

    Raises:
        HTTPException 400 for non-image content, 413 above MAX_UPLOAD_BYTES
    """
    extension = ALLOWED_IMAGE_TYPES.get(file.content_type or "")
    if not extension:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only image files are allowed (jpeg, png, gif, webp)"
        )

    contents = await file.read()
    if len(contents) > settings.MAX_UPLOAD_BYTES:
        max_mb = settings.MAX_UPLOAD_BYTES // (1024 * 1024)
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {max_mb}MB"
        )
    if not contents:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")

    filename = f"{field_name}-{int(time.time() * 1000)}-{secrets.token_hex(3)}{extension}"
    (upload_dir() / filename).write_bytes(contents)

    logger.info(f"Stored upload {file.filename} as {filename} ({len(contents)} bytes)")
    return f"{UPLOAD_URL_PREFIX}/{filename}"


async def save_optional_image(file: Optional[UploadFile], field_name: str = "image") -> Optional[str]:
    """save_image for optional form fields; browsers send an empty part when nothing is chosen"""
    if file is None or not file.filename:
        return None
    return await save_image(file, field_name)
