"""Receipt validators."""

from .amounts import contains_amount, find_amounts
from .payment_validator import FailureKind, PaymentFactsValidator, VerificationResult

__all__ = [
    "FailureKind",
    "PaymentFactsValidator",
    "VerificationResult",
    "contains_amount",
    "find_amounts",
]
