import os
import uuid
from typing import Optional

from fastapi import UploadFile


def file_extension(filename: Optional[str]) -> str:
    """Lower-cased extension including the dot, or "" when there is none."""
    if not filename:
        return ""
    return os.path.splitext(filename)[1].lower()


def build_object_key(prefix: str, user_id: str, ext: str) -> str:
    """`{prefix}/{user_id}/{uuid}{ext}`"""
    return f"{prefix}/{user_id}/{uuid.uuid4()}{ext}"


def content_type_or_default(upload: UploadFile, default: str) -> str:
    content_type = (upload.content_type or "").strip()
    # Browsers send octet-stream for unknown types
    if not content_type or content_type == "application/octet-stream":
        return default
    return content_type
