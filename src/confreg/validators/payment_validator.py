"""Payment fact checks for receipt text."""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from ..core.models import ExpectedPaymentFacts
from .amounts import contains_amount, find_amounts

logger = logging.getLogger(__name__)


class FailureKind(str, Enum):
    """Reasons a receipt is rejected. Values are the user-facing messages."""

    AMOUNT_MISMATCH = "amount mismatch"
    RECIPIENT_NAME_MISMATCH = "recipient name not found"
    TAX_ID_MISMATCH = "recipient tax ID not found"
    BANK_MISMATCH = "recipient bank not found"
    UNREADABLE_DOCUMENT = "unreadable document"
    OVERSIZED_DOCUMENT = "oversized document"
    UNSUPPORTED_MEDIA_TYPE = "unsupported media type"

    @property
    def code(self) -> str:
        """Stable machine-readable code, e.g. ``amount_mismatch``."""
        return self.name.lower()

    @property
    def message(self) -> str:
        return self.value


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of verifying one receipt. Passed iff no check failed."""

    failed_checks: list[FailureKind] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.failed_checks

    @property
    def messages(self) -> list[str]:
        return [kind.message for kind in self.failed_checks]

    def merge(self, other: "VerificationResult") -> "VerificationResult":
        """Merge two verification results, keeping check order."""
        return VerificationResult(failed_checks=self.failed_checks + other.failed_checks)

    @classmethod
    def rejected(cls, kind: FailureKind) -> "VerificationResult":
        """Single-entry result for conditions that prevent evaluation."""
        return cls(failed_checks=[kind])


class PaymentFactsValidator:
    """
    Check normalized receipt text against the expected payment facts.

    Every check runs regardless of earlier failures so the caller gets
    the complete list of problems in one pass.
    """

    def validate(self, text: str, expected: ExpectedPaymentFacts) -> VerificationResult:
        """
        Run all fact checks.

        Args:
            text: Receipt text, already passed through normalize_text
            expected: Facts the receipt must contain

        Returns:
            VerificationResult listing failed checks in a fixed order
        """
        result = VerificationResult()

        result = result.merge(self._check_amount(text, expected))
        result = result.merge(self._check_recipient_name(text, expected))
        result = result.merge(self._check_tax_id(text, expected))
        result = result.merge(self._check_bank(text, expected))

        return result

    def _check_amount(self, text: str, expected: ExpectedPaymentFacts) -> VerificationResult:
        if contains_amount(text, expected.amount):
            logger.debug(f"Found amount {expected.amount}")
            return VerificationResult()

        found = ", ".join(str(a) for a in find_amounts(text)) or "none"
        logger.info(
            f"Expected amount {expected.amount} {expected.currency} not found; "
            f"amounts present: {found}"
        )
        return VerificationResult.rejected(FailureKind.AMOUNT_MISMATCH)

    def _check_recipient_name(self, text: str, expected: ExpectedPaymentFacts) -> VerificationResult:
        variant = self._find_variant(text, expected.recipient_name_variants)
        if variant is None:
            return VerificationResult.rejected(FailureKind.RECIPIENT_NAME_MISMATCH)
        logger.debug(f"Found recipient: {variant}")
        return VerificationResult()

    def _check_tax_id(self, text: str, expected: ExpectedPaymentFacts) -> VerificationResult:
        # Whole digit run only, an INN embedded in an account number does not count
        pattern = rf"(?<![0-9]){re.escape(expected.recipient_tax_id)}(?![0-9])"
        if re.search(pattern, text):
            logger.debug(f"Found INN: {expected.recipient_tax_id}")
            return VerificationResult()
        return VerificationResult.rejected(FailureKind.TAX_ID_MISMATCH)

    def _check_bank(self, text: str, expected: ExpectedPaymentFacts) -> VerificationResult:
        variant = self._find_variant(text, expected.recipient_bank_variants)
        if variant is None:
            return VerificationResult.rejected(FailureKind.BANK_MISMATCH)
        logger.debug(f"Found bank: {variant}")
        return VerificationResult()

    @staticmethod
    def _find_variant(text: str, variants: frozenset[str]) -> str | None:
        for variant in sorted(variants):
            if variant in text:
                return variant
        return None
