"""Pytest configuration and fixtures."""

from datetime import date, timedelta
from decimal import Decimal

import fitz  # PyMuPDF
import pytest

from confreg.core.models import ExpectedPaymentFacts


@pytest.fixture
def expected_facts() -> ExpectedPaymentFacts:
    """Payment facts as configured for the conference."""
    return ExpectedPaymentFacts(
        amount=Decimal("500.00"),
        currency="RUB",
        recipient_name_variants=frozenset({"церковь слово жизни"}),
        recipient_tax_id="6453041398",
        recipient_bank_variants=frozenset({"сбербанк"}),
    )


@pytest.fixture
def latin_facts() -> ExpectedPaymentFacts:
    """
    Payment facts spelled in Latin script.

    The built-in PDF fonts only cover Latin text, so generated PDFs are
    checked against these.
    """
    return ExpectedPaymentFacts(
        amount=Decimal("500.00"),
        currency="RUB",
        recipient_name_variants=frozenset({"Church Word of Life", "Word of Life"}),
        recipient_tax_id="6453041398",
        recipient_bank_variants=frozenset({"Sberbank"}),
    )


@pytest.fixture
def receipt_lines() -> list[str]:
    """Text of a receipt that satisfies latin_facts."""
    return [
        "Payment order No. 1842",
        "Date: 19.10.2026",
        "Amount: 500.00 RUB",
        "Recipient: Church Word of Life",
        "INN 6453041398",
        "Bank: PAO Sberbank",
    ]


@pytest.fixture
def make_pdf():
    """Build PDF bytes with one line of text per list item, one list per page."""

    def _make_pdf(*pages: list[str], **save_options) -> bytes:
        doc = fitz.open()
        for lines in pages or ([],):
            page = doc.new_page()
            y = 72
            for line in lines:
                page.insert_text((72, y), line, fontsize=11)
                y += 18
        content = doc.tobytes(**save_options)
        doc.close()
        return content

    return _make_pdf


@pytest.fixture
def receipt_pdf(make_pdf, receipt_lines) -> bytes:
    """A PDF receipt that satisfies latin_facts."""
    return make_pdf(receipt_lines)


@pytest.fixture
def registration_data() -> dict:
    """A valid adult registration form."""
    return {
        "first_name": "Иван",
        "last_name": "Петров",
        "email": "ivan.petrov@mail.ru",
        "birth_date": "15/03/1990",
        "phone": "+79001234567",
        "telegram": "@ivan_petrov",
        "city": "Саратов",
        "need_accommodation": True,
        "church": "Слово Жизни",
        "role": "служитель",
        "was_before": False,
        "consent_donation": True,
        "consent_personal_data": True,
    }


@pytest.fixture
def birth_date_years_ago():
    """Format a birth date roughly `years` years before today."""

    def _birth_date(years: int) -> str:
        born = date.today() - timedelta(days=365 * years)
        return born.strftime("%d/%m/%Y")

    return _birth_date
