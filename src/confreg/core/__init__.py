"""Core module - models, verification pipeline and registrations."""

from .models import (
    ExpectedPaymentFacts,
    PaymentReceipt,
    ReceiptDocument,
    Registration,
    RegistrationRequest,
    RegistrationRole,
)

__all__ = [
    "ExpectedPaymentFacts",
    "PaymentReceipt",
    "ReceiptDocument",
    "Registration",
    "RegistrationRequest",
    "RegistrationRole",
]
