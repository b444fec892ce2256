"""Base extractor interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class ExtractionResult:
    """Result from document text extraction."""

    # Raw text content, pages joined in reading order
    text: str | None = None

    # Number of pages read
    page_count: int = 0

    # Any warnings or issues during extraction
    warnings: list[str] = field(default_factory=list)

    # Source type for tracking
    source_type: str = "unknown"

    @property
    def has_content(self) -> bool:
        """Check if extraction produced any text."""
        return bool(self.text and self.text.strip())

    @property
    def is_readable(self) -> bool:
        """False when the document structure could not be parsed."""
        return not self.source_type.endswith("_error")


class BaseExtractor(ABC):
    """Abstract base class for document extractors."""

    @abstractmethod
    def extract(self, content: bytes, filename: str | None = None) -> ExtractionResult:
        """
        Extract text from a document.

        Blocking and CPU-bound; callers on an event loop should run it in a
        worker thread.

        Args:
            content: Raw file bytes
            filename: Original filename (optional, for logging)

        Returns:
            ExtractionResult with text, or an error result. Never raises.
        """
        pass
