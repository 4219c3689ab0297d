"""Utility functions for mailsweep.

This sub-package provides utility functions for:
- File and path operations
- Performance timing
"""

from .file_utils import IMAGE_EXTENSIONS, ensure_directory, get_iso_timestamp, is_image_file
from .performance import Timing, measure

__all__ = [
    "IMAGE_EXTENSIONS",
    "Timing",
    "ensure_directory",
    "get_iso_timestamp",
    "is_image_file",
    "measure",
]
