"""
Media storage for album covers and song audio.

Files live under MEDIA_ROOT in per-owner directories:
    <MEDIA_ROOT>/<user id>/<album id>/<uuid>_<sanitized filename>
Rows keep the path relative to MEDIA_ROOT in their `url` column.
"""

from __future__ import annotations

import logging
import os
import re
import uuid
from pathlib import Path
from typing import Tuple

from fastapi import UploadFile

from media_catalog.errors import BadRequestError, CatalogError, PayloadTooLargeError

logger = logging.getLogger(__name__)

_MAX_FILE_BYTES_DEFAULT = 50 * 1024 * 1024  # 50MB

# Relative MEDIA_ROOT values resolve against the project root, not the process CWD.
_PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _media_root() -> Path:
    """Return the absolute directory where media files are stored."""
    configured = os.getenv("MEDIA_ROOT", "media").strip() or "media"
    raw = Path(configured)
    root = raw if raw.is_absolute() else (_PROJECT_ROOT / raw)
    return root.resolve()


def _max_file_bytes() -> int:
    try:
        return int(os.getenv("MAX_UPLOAD_BYTES", str(_MAX_FILE_BYTES_DEFAULT)))
    except ValueError:
        return _MAX_FILE_BYTES_DEFAULT


def _sanitize_filename(name: str, fallback: str) -> str:
    # Letters, numbers, dot, dash, underscore.
    name = name.strip().replace("\\", "_").replace("/", "_")
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", name)
    return name or fallback


def _check_size(content: bytes) -> None:
    if len(content) == 0:
        raise BadRequestError("Empty file.")
    if len(content) > _max_file_bytes():
        raise PayloadTooLargeError("File too large.")


# PUBLIC_INTERFACE
def validate_cover(upload: UploadFile, content: bytes) -> str:
    """Accept any image/* upload; return the sanitized filename."""
    safe_name = _sanitize_filename(upload.filename or "", "cover")
    content_type = (upload.content_type or "").lower()
    if not content_type.startswith("image/"):
        raise BadRequestError("Invalid content type; expected an image.")
    _check_size(content)
    return safe_name


# PUBLIC_INTERFACE
def validate_mp3(upload: UploadFile, content: bytes) -> str:
    """
    Basic mp3 validation.

    We accept:
    - Content-Type includes audio/mpeg OR application/octet-stream (some browsers)
    - Extension .mp3
    - Magic for ID3 header ("ID3") or MPEG frame sync (0xFFEx)

    Returns:
        The sanitized filename.
    """
    safe_name = _sanitize_filename(upload.filename or "", "upload.mp3")

    if not safe_name.lower().endswith(".mp3"):
        raise BadRequestError("Only .mp3 files are supported.")

    content_type = (upload.content_type or "").lower()
    if content_type and ("audio/mpeg" not in content_type) and ("application/octet-stream" not in content_type):
        raise BadRequestError("Invalid content type; expected audio/mpeg.")

    _check_size(content)

    head = content[:10]
    is_id3 = head.startswith(b"ID3")
    is_mpeg = len(head) >= 2 and head[0] == 0xFF and (head[1] & 0xE0) == 0xE0
    if not (is_id3 or is_mpeg):
        raise BadRequestError("File does not look like a valid mp3.")

    return safe_name


# PUBLIC_INTERFACE
def store(directory: Tuple[uuid.UUID, uuid.UUID], safe_name: str, content: bytes) -> str:
    """
    Write `content` under MEDIA_ROOT/<user id>/<album id>/.

    Returns:
        The stored path relative to MEDIA_ROOT (forward slashes).
    """
    user_id, album_id = directory
    relative = Path(str(user_id)) / str(album_id) / f"{uuid.uuid4()}_{safe_name}"
    target = _media_root() / relative

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    except OSError:
        logger.exception("Failed to store upload at %s", target)
        raise CatalogError("Failed to store file.")

    logger.info("Stored %d bytes at %s", len(content), target)
    return relative.as_posix()
