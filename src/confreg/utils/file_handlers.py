"""File type detection and handling utilities."""

import re
from datetime import datetime
from enum import Enum
from pathlib import Path

import magic
from fastapi import UploadFile


class FileType(str, Enum):
    """Detected file types. Receipts are accepted as PDF only."""

    PDF = "pdf"
    UNKNOWN = "unknown"


# PDF aliases seen in Content-Type headers and libmagic output
MIME_TO_FILETYPE: dict[str, FileType] = {
    "application/pdf": FileType.PDF,
    "application/x-pdf": FileType.PDF,
    "application/acrobat": FileType.PDF,
}

_TRANSLIT = {
    "а": "a", "б": "b", "в": "v", "г": "g", "д": "d", "е": "e", "ё": "e",
    "ж": "zh", "з": "z", "и": "i", "й": "y", "к": "k", "л": "l", "м": "m",
    "н": "n", "о": "o", "п": "p", "р": "r", "с": "s", "т": "t", "у": "u",
    "ф": "f", "х": "h", "ц": "ts", "ч": "ch", "ш": "sh", "щ": "sch",
    "ъ": "", "ы": "y", "ь": "", "э": "e", "ю": "yu", "я": "ya",
}


def detect_file_type(file_content: bytes) -> FileType:
    """
    Detect file type from content using libmagic.

    The filename is never consulted, so a renamed file cannot pass as a PDF.
    """
    mime = magic.from_buffer(file_content[:8192], mime=True)
    return MIME_TO_FILETYPE.get(mime, FileType.UNKNOWN)


def file_type_from_media_type(media_type: str | None) -> FileType:
    """Map a declared Content-Type header (parameters ignored) to a FileType."""
    if not media_type:
        return FileType.UNKNOWN
    mime = media_type.split(";", 1)[0].strip().lower()
    return MIME_TO_FILETYPE.get(mime, FileType.UNKNOWN)


def transliterate(text: str | None) -> str:
    """Transliterate Cyrillic to Latin and squash everything else to underscores."""
    if not text:
        return ""

    chars = []
    for char in text:
        latin = _TRANSLIT.get(char.lower())
        if latin is not None:
            chars.append(latin.capitalize() if char.isupper() else latin)
        elif char.isascii() and char.isalnum():
            chars.append(char)
        else:
            chars.append("_")

    return re.sub(r"_+", "_", "".join(chars)).strip("_")


class FileHandler:
    """Handle file operations for uploaded receipts."""

    def __init__(self, upload_dir: Path, max_size_bytes: int = 10 * 1024 * 1024):
        self.upload_dir = Path(upload_dir)
        self.max_size_bytes = max_size_bytes

    async def read_upload(self, upload: UploadFile) -> tuple[bytes, str]:
        """
        Read an uploaded file without trusting its declared size.

        At most one byte more than the limit is read, which is enough for
        the verifier to reject the document as oversized.

        Args:
            upload: FastAPI UploadFile

        Returns:
            Tuple of (file_content, declared_media_type)
        """
        content = await upload.read(self.max_size_bytes + 1)
        return content, upload.content_type or ""

    def receipt_filename(
        self,
        registration_id: int,
        first_name: str,
        last_name: str,
        timestamp: datetime | None = None,
    ) -> str:
        """Build `<id>_<first>_<last>_<yyyymmdd_HHMMSS>.pdf`."""
        timestamp = timestamp or datetime.now()
        return "{}_{}_{}_{}.pdf".format(
            registration_id,
            transliterate(first_name),
            transliterate(last_name),
            timestamp.strftime("%Y%m%d_%H%M%S"),
        )

    def save_receipt(
        self,
        content: bytes,
        registration_id: int,
        first_name: str,
        last_name: str,
    ) -> Path:
        """
        Store an accepted receipt.

        Returns:
            Path of the stored file
        """
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        file_path = self.upload_dir / self.receipt_filename(registration_id, first_name, last_name)
        file_path.write_bytes(content)
        return file_path
