"""File utility functions for mailsweep."""

from __future__ import annotations

import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg")

_UNSAFE_TIMESTAMP_CHARS = re.compile(r"[:.]")


def ensure_directory(directory_path: str | Path) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        directory_path: Path to the directory.

    Returns:
        Absolute path to the directory.
    """
    path = Path(directory_path).resolve()
    path.mkdir(parents=True, exist_ok=True)
    return path


def is_image_file(filename: str) -> bool:
    """Return True if *filename* has a supported raster extension (case-insensitive)."""
    return os.path.splitext(filename)[1].lower() in IMAGE_EXTENSIONS


def get_iso_timestamp(now: Optional[datetime] = None) -> str:
    """Get a filesystem-safe ISO-8601 UTC timestamp.

    Args:
        now: Moment to format; defaults to the current time.

    Returns:
        Timestamp such as ``2026-10-18T09-15-02-481Z``.
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    iso = now.strftime("%Y-%m-%dT%H:%M:%S") + f".{now.microsecond // 1000:03d}Z"
    return _UNSAFE_TIMESTAMP_CHARS.sub("-", iso)
