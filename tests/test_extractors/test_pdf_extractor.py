"""Tests for PDF text extraction."""

import fitz  # PyMuPDF

from confreg.extractors import PDFExtractor


class TestPDFExtractor:
    """Test cases for PDFExtractor."""

    def setup_method(self):
        """Setup test fixtures."""
        self.extractor = PDFExtractor(max_pages=3, time_budget_seconds=5.0)

    def test_extracts_text(self, receipt_pdf):
        """Test that embedded text is extracted."""
        result = self.extractor.extract(receipt_pdf, "receipt.pdf")

        assert result.is_readable
        assert result.has_content
        assert result.source_type == "pdf_native"
        assert result.page_count == 1
        assert "Church Word of Life" in result.text
        assert "6453041398" in result.text

    def test_image_only_pdf_has_no_text(self, make_pdf):
        """Test that a page without text is readable but empty."""
        result = self.extractor.extract(make_pdf([]))

        assert result.is_readable
        assert not result.has_content
        assert result.source_type == "pdf_scanned"
        assert result.warnings

    def test_garbage_is_unreadable(self):
        """Test that a corrupt document yields an error result, not an exception."""
        result = self.extractor.extract(b"%PDF-1.7\n\x00\x01 not really a pdf \xff\xfe")

        assert not result.is_readable
        assert result.source_type == "pdf_error"
        assert result.text is None

    def test_password_protected_is_unreadable(self, make_pdf, receipt_lines):
        """Test that encrypted documents are not opened."""
        content = make_pdf(
            receipt_lines,
            encryption=fitz.PDF_ENCRYPT_AES_256,
            owner_pw="owner-secret",
            user_pw="user-secret",
        )

        result = self.extractor.extract(content)

        assert not result.is_readable
        assert "password" in result.warnings[0]

    def test_page_limit(self, make_pdf):
        """Test that documents over the page ceiling are rejected."""
        content = make_pdf(["page one"], ["page two"], ["page three"], ["page four"])

        result = self.extractor.extract(content)

        assert not result.is_readable
        assert "4 pages" in result.warnings[0]

    def test_pages_within_limit_are_joined(self, make_pdf):
        """Test that text from every page is returned in order."""
        content = make_pdf(["first page"], ["second page"])

        result = self.extractor.extract(content)

        assert result.page_count == 2
        assert result.text.index("first page") < result.text.index("second page")

    def test_exhausted_time_budget_is_unreadable(self, receipt_pdf):
        """Test that parsing stops once the time budget is spent."""
        extractor = PDFExtractor(time_budget_seconds=0)

        result = extractor.extract(receipt_pdf)

        assert not result.is_readable
        assert "exceeded" in result.warnings[0]
