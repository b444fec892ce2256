"""Receipt verification pipeline."""

import logging
import time

from ..extractors import PDFExtractor
from ..utils.file_handlers import FileType, detect_file_type, file_type_from_media_type
from ..utils.text import normalize_text
from ..validators import FailureKind, PaymentFactsValidator, VerificationResult
from .models import ExpectedPaymentFacts, ReceiptDocument

logger = logging.getLogger(__name__)


class ReceiptVerifier:
    """
    Decide whether an uploaded receipt proves the expected payment.

    Orchestrates: Size check -> Media type check -> Extraction -> Fact checks

    A pure function of its inputs: no state is kept between calls, so one
    instance can serve concurrent verifications. `verify` blocks on PDF
    parsing and should be run off the event loop.
    """

    def __init__(
        self,
        max_size_bytes: int = 10 * 1024 * 1024,
        pdf_extractor: PDFExtractor | None = None,
        facts_validator: PaymentFactsValidator | None = None,
    ):
        self.max_size_bytes = max_size_bytes
        self.pdf_extractor = pdf_extractor or PDFExtractor()
        self.facts_validator = facts_validator or PaymentFactsValidator()

    def verify(
        self,
        document: ReceiptDocument,
        expected: ExpectedPaymentFacts,
    ) -> VerificationResult:
        """
        Verify a receipt against the expected payment facts.

        Oversized, empty, non-PDF and unparsable documents are rejected with
        a single failure before any fact is checked. Otherwise all four fact
        checks run and every failure is reported.

        Args:
            document: Uploaded receipt
            expected: Facts the receipt must contain

        Returns:
            VerificationResult; never raises for bad input
        """
        start_time = time.time()
        name = document.filename or "receipt"

        # Step 1: Size ceiling, enforced here whatever the client checked
        if document.size > self.max_size_bytes:
            logger.warning(
                f"Rejecting {name}: {document.size} bytes exceeds {self.max_size_bytes}"
            )
            return VerificationResult.rejected(FailureKind.OVERSIZED_DOCUMENT)

        if document.size == 0:
            logger.warning(f"Rejecting {name}: empty upload")
            return VerificationResult.rejected(FailureKind.UNREADABLE_DOCUMENT)

        # Step 2: Declared type and magic bytes must both say PDF
        declared_type = file_type_from_media_type(document.media_type)
        detected_type = detect_file_type(document.content)
        if declared_type != FileType.PDF or detected_type != FileType.PDF:
            logger.warning(
                f"Rejecting {name}: declared {document.media_type!r}, "
                f"detected {detected_type.value}"
            )
            return VerificationResult.rejected(FailureKind.UNSUPPORTED_MEDIA_TYPE)

        # Step 3: Extract text
        extraction = self.pdf_extractor.extract(document.content, document.filename)
        if not extraction.is_readable:
            return VerificationResult.rejected(FailureKind.UNREADABLE_DOCUMENT)

        # Step 4: Check every fact
        text = normalize_text(extraction.text) if extraction.has_content else ""
        result = self.facts_validator.validate(text, expected)

        elapsed_ms = int((time.time() - start_time) * 1000)
        if result.passed:
            logger.info(f"Receipt {name} passed verification in {elapsed_ms}ms")
        else:
            logger.warning(
                f"Receipt {name} failed verification in {elapsed_ms}ms: "
                f"{', '.join(result.messages)}"
            )

        return result
