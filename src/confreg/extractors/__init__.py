"""Document text extractors."""

from .base import BaseExtractor, ExtractionResult
from .pdf import PDFExtractor

__all__ = [
    "BaseExtractor",
    "ExtractionResult",
    "PDFExtractor",
]
