"""Defect photo storage on the local upload directory."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

from fastapi import UploadFile

from ..config import settings
from ..domain_errors import ValidationError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024  # 1MB


def upload_dir() -> Path:
    path = Path(settings.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def validate_photo_filename(filename: str | None) -> str:
    """Return the lower-cased extension of an acceptable photo filename."""
    if not filename:
        raise ValidationError("Photo filename is required", code="PHOTO_INVALID")
    if "." not in filename:
        raise ValidationError("Photo file extension is required", code="PHOTO_INVALID")

    ext = filename.rsplit(".", 1)[-1].lower()
    if ext not in settings.allowed_photo_extensions_list:
        raise ValidationError(
            f"Photo type not allowed. Allowed: {settings.ALLOWED_PHOTO_EXTENSIONS}",
            code="PHOTO_INVALID",
            details={"filename": filename},
        )
    return ext


async def store_photo(upload: UploadFile) -> str:
    """Stream an uploaded photo to disk and return its public reference."""
    ext = validate_photo_filename(upload.filename)
    name = f"{uuid.uuid4()}.{ext}"
    dest_path = upload_dir() / name

    size = 0
    try:
        with dest_path.open("xb") as out:
            while True:
                chunk = await upload.read(_CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > settings.MAX_UPLOAD_SIZE:
                    raise ValidationError(
                        f"Photo too large. Max size: {settings.MAX_UPLOAD_SIZE} bytes",
                        code="PHOTO_TOO_LARGE",
                        details={"filename": upload.filename},
                    )
                out.write(chunk)
    except ValidationError:
        # Partial file must not outlive the rejected upload.
        dest_path.unlink(missing_ok=True)
        raise
    finally:
        await upload.close()

    logger.info("photo.stored name=%s size=%s", name, size)
    return f"{settings.UPLOAD_URL_PREFIX.rstrip('/')}/{name}"


def remove_photo(photo_ref: str) -> None:
    """Best-effort removal of a stored photo by its public reference."""
    name = Path(photo_ref).name
    if not name:
        return
    try:
        (Path(settings.UPLOAD_DIR) / name).unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove photo %s", name, exc_info=True)
