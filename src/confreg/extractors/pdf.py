"""PDF text extractor using PyMuPDF."""

import logging
import time

import fitz  # PyMuPDF

from .base import BaseExtractor, ExtractionResult

logger = logging.getLogger(__name__)


class PDFExtractor(BaseExtractor):
    """
    Extract embedded text from native PDF receipts.

    Only text blocks from page content streams are read. JavaScript, form
    actions and embedded files are never evaluated. Anything that cannot be
    parsed within the page and time ceilings yields an error result instead
    of an exception.
    """

    def __init__(self, max_pages: int = 10, time_budget_seconds: float = 5.0):
        self.max_pages = max_pages
        self.time_budget_seconds = time_budget_seconds

    def extract(self, content: bytes, filename: str | None = None) -> ExtractionResult:
        """
        Extract text from a PDF.

        Args:
            content: PDF file bytes
            filename: Original filename (used in log messages only)

        Returns:
            ExtractionResult with extracted text, or source_type "pdf_error"
        """
        started = time.monotonic()
        all_text = []
        page_count = 0

        try:
            with fitz.open(stream=content, filetype="pdf") as doc:
                if doc.needs_pass:
                    return self._error("PDF is password-protected", filename)

                page_count = doc.page_count
                if page_count == 0:
                    return self._error("PDF has no pages", filename)
                if page_count > self.max_pages:
                    return self._error(
                        f"PDF has {page_count} pages, limit is {self.max_pages}",
                        filename,
                    )

                for page in doc:
                    # Text blocks in reading order; image blocks have type 1
                    text_blocks = page.get_text("blocks", sort=True)
                    lines = []
                    for block in text_blocks:
                        if block[6] == 0:
                            block_text = block[4].strip()
                            if block_text:
                                lines.append(block_text)
                    if lines:
                        all_text.append("\n".join(lines))

                    if time.monotonic() - started >= self.time_budget_seconds:
                        return self._error(
                            f"PDF parsing exceeded {self.time_budget_seconds}s",
                            filename,
                        )

        except Exception as e:
            return self._error(f"PDF extraction error: {str(e)}", filename)

        full_text = "\n\n".join(all_text) if all_text else None
        warnings = []
        if full_text is None:
            warnings.append("PDF contains no extractable text (scanned or image-only)")

        return ExtractionResult(
            text=full_text,
            page_count=page_count,
            warnings=warnings,
            source_type="pdf_native" if full_text else "pdf_scanned",
        )

    def _error(self, message: str, filename: str | None) -> ExtractionResult:
        logger.warning(f"Cannot read {filename or 'receipt'}: {message}")
        return ExtractionResult(
            text=None,
            warnings=[message],
            source_type="pdf_error",
        )
