# app/utils/upload.py
from fastapi import UploadFile

from app.config import settings
from app.utils.exceptions import ValidationFailedError

ALLOWED_SCAN_TYPES = {"application/pdf", "image/jpeg", "image/png"}


async def read_upload(file: UploadFile, max_bytes: int = None) -> bytes:
    """Read an uploaded file, rejecting empty and oversized files."""
    limit = max_bytes or settings.MAX_UPLOAD_BYTES
    # one byte past the limit is enough to tell it is too large
    data = await file.read(limit + 1)
    if not data:
        raise ValidationFailedError("Uploaded file is empty")
    if len(data) > limit:
        raise ValidationFailedError(f"File exceeds the {limit // (1024 * 1024)}MB upload limit")
    return data


def display_filename(file: UploadFile, default: str = "upload") -> str:
    # browsers on Windows may send the full client path
    name = (file.filename or "").replace("\\", "/").rsplit("/", 1)[-1].strip()
    return name or default
