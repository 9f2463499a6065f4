# app/utils/security.py

import os
import uuid
from fastapi import UploadFile, HTTPException

from app.core.constants import ALLOWED_IMAGE_TYPES, MAX_FILE_SIZE


async def validate_and_read_image(file: UploadFile) -> bytes:
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=400, detail="Invalid file type.")

    contents = await file.read()

    if len(contents) > MAX_FILE_SIZE:
        raise HTTPException(status_code=400, detail="File too large (10MB max).")

    return contents


def generate_safe_filename(original_filename: str) -> str:
    ext = os.path.splitext(original_filename or "")[1].lower() or ".jpg"
    return f"{uuid.uuid4()}{ext}"
