"""Utility modules."""

from .file_handlers import FileHandler, FileType, detect_file_type, file_type_from_media_type
from .text import normalize_text

__all__ = [
    "FileHandler",
    "FileType",
    "detect_file_type",
    "file_type_from_media_type",
    "normalize_text",
]
