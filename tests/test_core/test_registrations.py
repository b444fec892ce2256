"""Tests for registrations and payment completion."""

import asyncio
import threading
import time
from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from confreg.core.models import ReceiptDocument, RegistrationRequest, RegistrationRole
from confreg.core.pipeline import ReceiptVerifier
from confreg.core.registrations import (
    RegistrationAlreadyCompletedError,
    RegistrationNotFoundError,
    RegistrationService,
    RegistrationStore,
)
from confreg.utils.file_handlers import FileHandler
from confreg.validators import FailureKind, VerificationResult


class TestRegistrationRequest:
    """Test cases for registration form rules."""

    def test_adult_registration_is_valid(self, registration_data):
        """Test that an adult needs no parent details."""
        request = RegistrationRequest(**registration_data)

        assert request.role == RegistrationRole.MINISTER
        assert not request.is_under(18)

    @pytest.mark.parametrize("birth_date", ["1990-03-15", "31/02/1990", "01/01/2999", "01/01/1850"])
    def test_invalid_birth_date(self, registration_data, birth_date):
        """Test that malformed, impossible and out of range dates are rejected."""
        registration_data["birth_date"] = birth_date

        with pytest.raises(ValidationError):
            RegistrationRequest(**registration_data)

    def test_phone_format(self, registration_data):
        """Test that phones must be +7 followed by ten digits."""
        registration_data["phone"] = "89001234567"

        with pytest.raises(ValidationError):
            RegistrationRequest(**registration_data)

    @pytest.mark.parametrize("consent", ["consent_donation", "consent_personal_data"])
    def test_consents_always_required(self, registration_data, consent):
        """Test that donation and personal data consents are mandatory."""
        registration_data[consent] = False

        with pytest.raises(ValidationError, match="consent"):
            RegistrationRequest(**registration_data)

    def test_minor_requires_parent(self, registration_data, birth_date_years_ago):
        """Test that participants under 18 need a parent with a valid phone."""
        registration_data["birth_date"] = birth_date_years_ago(16)
        registration_data["role"] = "подросток"

        with pytest.raises(ValidationError, match="Parent full name"):
            RegistrationRequest(**registration_data)

        registration_data["parent_full_name"] = "Петрова Анна Сергеевна"
        registration_data["parent_phone"] = "+7900"
        with pytest.raises(ValidationError, match="Parent phone"):
            RegistrationRequest(**registration_data)

        registration_data["parent_phone"] = "+79007654321"
        request = RegistrationRequest(**registration_data)
        assert request.is_under(18)
        assert not request.is_under(14)

    def test_under_14_requires_consent(self, registration_data, birth_date_years_ago):
        """Test that participants under 14 need the extra consent."""
        registration_data.update(
            birth_date=birth_date_years_ago(10),
            role="подросток",
            parent_full_name="Петрова Анна Сергеевна",
            parent_phone="+79007654321",
        )

        with pytest.raises(ValidationError, match="under 14"):
            RegistrationRequest(**registration_data)

        registration_data["consent_under_14"] = True
        assert RegistrationRequest(**registration_data).is_under(14)


class TestRegistrationStore:
    """Test cases for RegistrationStore."""

    def setup_method(self):
        """Setup test fixtures."""
        self.store = RegistrationStore()

    def test_ids_start_at_one(self, registration_data):
        """Test sequential registration ids."""
        first = self.store.add(RegistrationRequest(**registration_data))
        second = self.store.add(RegistrationRequest(**registration_data))

        assert (first.id, second.id) == (1, 2)
        assert self.store.get(2) is second
        assert first.full_name == "Иван Петров"

    def test_unknown_id(self):
        """Test that a missing registration raises a LookupError."""
        with pytest.raises(LookupError):
            self.store.get(42)

    def test_list_with_offset_and_limit(self, registration_data):
        """Test paging through registrations."""
        for _ in range(5):
            self.store.add(RegistrationRequest(**registration_data))

        page = self.store.list_registrations(offset=1, limit=2)

        assert [r.id for r in page] == [2, 3]
        assert self.store.list_registrations(offset=10) == []


class StaticVerifier(ReceiptVerifier):
    """Verifier that returns a fixed result after an optional delay."""

    def __init__(self, result=None, delay: float = 0):
        super().__init__()
        self.result = result
        self.delay = delay

    def verify(self, document, expected):
        if self.delay:
            time.sleep(self.delay)
        if self.result is None:
            return super().verify(document, expected)
        return self.result


class CountingVerifier(ReceiptVerifier):
    """Verifier that records how many calls run at the same time."""

    def __init__(self, delay: float):
        super().__init__()
        self.delay = delay
        self.calls = 0
        self.running = 0
        self.peak = 0
        self._lock = threading.Lock()

    def verify(self, document, expected):
        with self._lock:
            self.calls += 1
            self.running += 1
            self.peak = max(self.peak, self.running)
        try:
            time.sleep(self.delay)
            return VerificationResult()
        finally:
            with self._lock:
                self.running -= 1


class RecordingFileHandler(FileHandler):
    """FileHandler that remembers which thread saved the receipt."""

    saved_in_thread = None

    def save_receipt(self, *args):
        self.saved_in_thread = threading.get_ident()
        return super().save_receipt(*args)


class TestRegistrationService:
    """Test cases for RegistrationService."""

    @pytest.fixture(autouse=True)
    def setup_service(self, tmp_path, latin_facts, registration_data):
        self.upload_dir = tmp_path / "receipts"
        self.service = RegistrationService(
            store=RegistrationStore(),
            verifier=ReceiptVerifier(),
            file_handler=FileHandler(self.upload_dir),
            expected=latin_facts,
        )
        self.registration = self.service.create_registration(
            RegistrationRequest(**registration_data)
        )
        yield
        self.service.shutdown()

    def complete(self, content: bytes, registration_id: int | None = None):
        document = ReceiptDocument(
            content=content,
            media_type="application/pdf",
            filename="чек.pdf",
        )
        return asyncio.run(
            self.service.complete_payment(registration_id or self.registration.id, document)
        )

    def test_valid_receipt_completes_registration(self, receipt_pdf):
        """Test that an accepted receipt is stored and completes the registration."""
        completion = self.complete(receipt_pdf)

        assert completion.completed
        assert completion.result.passed
        assert self.registration.is_completed

        receipt = completion.receipt
        assert receipt.id == 1
        assert receipt.donation_amount == Decimal("500.00")
        assert receipt.file_name == "чек.pdf"
        assert receipt.file_size == len(receipt_pdf)
        assert receipt.file_path.endswith(".pdf")
        assert "_Ivan_Petrov_" in receipt.file_path
        assert Path(receipt.file_path).parent == self.upload_dir
        assert Path(receipt.file_path).read_bytes() == receipt_pdf

    def test_rejected_receipt_is_not_stored(self, make_pdf):
        """Test that a failed verification leaves the registration pending."""
        completion = self.complete(make_pdf(["Amount: 400.00 RUB"]))

        assert not completion.completed
        assert completion.result.failed_checks == [
            FailureKind.AMOUNT_MISMATCH,
            FailureKind.RECIPIENT_NAME_MISMATCH,
            FailureKind.TAX_ID_MISMATCH,
            FailureKind.BANK_MISMATCH,
        ]
        assert not self.registration.is_completed
        assert not self.upload_dir.exists()

    def test_retry_after_rejection(self, make_pdf, receipt_pdf):
        """Test that a new upload can complete a registration after a rejection."""
        assert not self.complete(make_pdf([])).completed
        assert self.complete(receipt_pdf).completed

    def test_second_completion_is_refused(self, receipt_pdf):
        """Test that a completed registration cannot be completed again."""
        self.complete(receipt_pdf)

        with pytest.raises(RegistrationAlreadyCompletedError):
            self.complete(receipt_pdf)

    def test_unknown_registration(self, receipt_pdf):
        """Test that completing a missing registration raises."""
        with pytest.raises(RegistrationNotFoundError):
            self.complete(receipt_pdf, registration_id=99)

    def test_verification_timeout_is_unreadable(self, receipt_pdf):
        """Test that a verification exceeding the timeout is rejected."""
        self.service.verifier = StaticVerifier(delay=0.3)
        self.service.verification_timeout_seconds = 0.01

        completion = self.complete(receipt_pdf)

        assert completion.result.failed_checks == [FailureKind.UNREADABLE_DOCUMENT]
        assert not self.registration.is_completed

    def test_timed_out_parses_still_hold_their_slot(self, receipt_pdf, latin_facts):
        """Test that verifications past the timeout never run above the bound."""
        verifier = CountingVerifier(delay=0.3)
        service = RegistrationService(
            store=RegistrationStore(),
            verifier=verifier,
            file_handler=FileHandler(self.upload_dir),
            expected=latin_facts,
            max_concurrent_verifications=1,
            verification_timeout_seconds=0.05,
        )
        document = ReceiptDocument(content=receipt_pdf, media_type="application/pdf")

        async def verify_many(n: int):
            return await asyncio.gather(*(service.verify(document) for _ in range(n)))

        first_round = asyncio.run(verify_many(4))
        second_round = asyncio.run(verify_many(2))
        time.sleep(0.4)
        service.shutdown()

        for result in first_round + second_round:
            assert result.failed_checks == [FailureKind.UNREADABLE_DOCUMENT]
        assert verifier.peak == 1
        assert verifier.calls == 1

    def test_receipt_is_saved_off_the_event_loop(self, receipt_pdf):
        """Test that the receipt file is written from a worker thread."""
        handler = RecordingFileHandler(self.upload_dir)
        self.service.file_handler = handler

        completion = self.complete(receipt_pdf)

        assert completion.completed
        assert handler.saved_in_thread is not None
        assert handler.saved_in_thread != threading.get_ident()

    def test_counts(self, receipt_pdf, registration_data):
        """Test completed and pending counts."""
        self.service.create_registration(RegistrationRequest(**registration_data))
        self.complete(receipt_pdf)

        assert self.service.store.count() == 2
        assert self.service.store.count_completed() == 1
        assert self.service.store.count_pending() == 1
