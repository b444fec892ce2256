"""Registration storage and payment completion."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from itertools import count
from pathlib import Path

from fastapi.concurrency import run_in_threadpool

from ..config import Settings, get_settings
from ..extractors import PDFExtractor
from ..utils.file_handlers import FileHandler
from ..validators import FailureKind, VerificationResult
from .models import (
    ExpectedPaymentFacts,
    PaymentReceipt,
    ReceiptDocument,
    Registration,
    RegistrationRequest,
)
from .pipeline import ReceiptVerifier

logger = logging.getLogger(__name__)


class RegistrationNotFoundError(LookupError):
    """No registration with the given id."""

    def __init__(self, registration_id: int):
        super().__init__(f"Registration {registration_id} not found")
        self.registration_id = registration_id


class RegistrationAlreadyCompletedError(ValueError):
    """The registration already has an accepted receipt."""

    def __init__(self, registration_id: int):
        super().__init__(f"Registration {registration_id} is already completed")
        self.registration_id = registration_id


class RegistrationStore:
    """
    In-memory registration repository.

    Accessed from the event loop only; verification threads never touch it.
    """

    def __init__(self):
        self._registrations: dict[int, Registration] = {}
        self._registration_ids = count(1)
        self._receipt_ids = count(1)

    def add(self, request: RegistrationRequest) -> Registration:
        registration = Registration(id=next(self._registration_ids), **request.model_dump())
        self._registrations[registration.id] = registration
        return registration

    def get(self, registration_id: int) -> Registration:
        try:
            return self._registrations[registration_id]
        except KeyError:
            raise RegistrationNotFoundError(registration_id) from None

    def list_registrations(self, offset: int = 0, limit: int = 50) -> list[Registration]:
        ordered = sorted(self._registrations.values(), key=lambda r: r.id)
        return ordered[offset:offset + limit]

    def count(self) -> int:
        return len(self._registrations)

    def count_completed(self) -> int:
        return sum(1 for r in self._registrations.values() if r.is_completed)

    def count_pending(self) -> int:
        return self.count() - self.count_completed()

    def next_receipt_id(self) -> int:
        return next(self._receipt_ids)

    def attach_receipt(self, registration_id: int, receipt: PaymentReceipt) -> Registration:
        """Store the receipt and mark the registration complete."""
        registration = self.get(registration_id)
        if registration.is_completed:
            raise RegistrationAlreadyCompletedError(registration_id)

        registration.receipt = receipt
        registration.completed_at = datetime.now()
        return registration


@dataclass
class PaymentCompletion:
    """Outcome of a payment completion attempt."""

    registration: Registration
    result: VerificationResult
    receipt: PaymentReceipt | None = None

    @property
    def completed(self) -> bool:
        return self.receipt is not None


class RegistrationService:
    """
    Create registrations and complete them with a verified payment receipt.

    Receipts are stored only when verification passes; a rejected receipt
    leaves the registration pending so the participant can upload again.
    """

    def __init__(
        self,
        store: RegistrationStore,
        verifier: ReceiptVerifier,
        file_handler: FileHandler,
        expected: ExpectedPaymentFacts,
        max_concurrent_verifications: int = 4,
        verification_timeout_seconds: float = 30.0,
    ):
        self.store = store
        self.verifier = verifier
        self.file_handler = file_handler
        self.expected = expected
        self.verification_timeout_seconds = verification_timeout_seconds
        # Sole bound on concurrent parses, timed-out ones included
        self._executor = ThreadPoolExecutor(
            max_workers=max_concurrent_verifications,
            thread_name_prefix="receipt-verifier",
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "RegistrationService":
        """Wire a service from application settings."""
        verifier = ReceiptVerifier(
            max_size_bytes=settings.max_receipt_size_bytes,
            pdf_extractor=PDFExtractor(
                max_pages=settings.max_pdf_pages,
                time_budget_seconds=settings.pdf_parse_timeout_seconds,
            ),
        )
        return cls(
            store=RegistrationStore(),
            verifier=verifier,
            file_handler=FileHandler(settings.upload_dir, settings.max_receipt_size_bytes),
            expected=settings.expected_payment_facts,
            max_concurrent_verifications=settings.max_concurrent_verifications,
            verification_timeout_seconds=settings.verification_timeout_seconds,
        )

    def create_registration(self, request: RegistrationRequest) -> Registration:
        registration = self.store.add(request)
        logger.info(f"Registration created with ID: {registration.id}")
        return registration

    async def complete_payment(
        self,
        registration_id: int,
        document: ReceiptDocument,
    ) -> PaymentCompletion:
        """
        Verify a receipt and, if it passes, complete the registration.

        Raises:
            RegistrationNotFoundError: Unknown registration id
            RegistrationAlreadyCompletedError: Registration already paid
        """
        registration = self.store.get(registration_id)
        if registration.is_completed:
            raise RegistrationAlreadyCompletedError(registration_id)

        result = await self.verify(document)
        if not result.passed:
            logger.warning(
                f"Receipt for registration {registration_id} rejected: "
                f"{', '.join(result.messages)}"
            )
            return PaymentCompletion(registration=registration, result=result)

        # Another upload may have completed it while this one was verified
        if registration.is_completed:
            raise RegistrationAlreadyCompletedError(registration_id)

        file_path = await run_in_threadpool(
            self.file_handler.save_receipt,
            document.content,
            registration_id,
            registration.first_name,
            registration.last_name,
        )
        receipt = PaymentReceipt(
            id=self.store.next_receipt_id(),
            registration_id=registration_id,
            donation_amount=self.expected.amount,
            file_name=Path(document.filename or file_path.name).name,
            file_path=str(file_path),
            file_size=document.size,
        )
        try:
            registration = self.store.attach_receipt(registration_id, receipt)
        except RegistrationAlreadyCompletedError:
            file_path.unlink(missing_ok=True)
            raise

        logger.info(f"Registration completed: {registration.email}")
        return PaymentCompletion(registration=registration, result=result, receipt=receipt)

    async def verify(self, document: ReceiptDocument) -> VerificationResult:
        """
        Run the blocking verifier on the verification pool with a timeout.

        A timeout only stops the wait. The parse keeps its worker until it
        finishes, so at most `max_concurrent_verifications` parses ever run
        at once; queued verifications that time out never start.
        """
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(
            self._executor, self.verifier.verify, document, self.expected
        )
        try:
            return await asyncio.wait_for(future, timeout=self.verification_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                f"Verification of {document.filename or 'receipt'} timed out after "
                f"{self.verification_timeout_seconds}s"
            )
            return VerificationResult.rejected(FailureKind.UNREADABLE_DOCUMENT)

    def shutdown(self) -> None:
        """Stop the verification pool, dropping verifications not yet started."""
        self._executor.shutdown(wait=False, cancel_futures=True)


@lru_cache
def get_registration_service() -> RegistrationService:
    """Get the process-wide registration service."""
    return RegistrationService.from_settings(get_settings())
