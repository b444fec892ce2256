"""Pydantic models for payment facts, receipts and registrations."""

import re
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from ..utils.text import normalize_text


BIRTH_DATE_FORMAT = "%d/%m/%Y"
PHONE_PATTERN = r"^\+7\d{10}$"


class ExpectedPaymentFacts(BaseModel):
    """
    Fixed facts an uploaded receipt must contain.

    Built once from configuration. Name and bank variants are stored
    normalized so they can be compared directly with normalized receipt text.
    """

    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(..., gt=0, description="Exact donation amount")
    currency: str = Field(default="RUB", min_length=3, max_length=3)
    recipient_name_variants: frozenset[str] = Field(..., min_length=1)
    recipient_tax_id: str = Field(..., pattern=r"^\d{10}(\d{2})?$", description="Recipient INN")
    recipient_bank_variants: frozenset[str] = Field(..., min_length=1)

    @field_validator("recipient_name_variants", "recipient_bank_variants", mode="after")
    @classmethod
    def normalize_variants(cls, value: frozenset[str]) -> frozenset[str]:
        variants = frozenset(normalize_text(v) for v in value if v.strip())
        if not variants:
            raise ValueError("At least one non-blank variant is required")
        return variants


class ReceiptDocument(BaseModel):
    """An uploaded receipt, held only for the duration of one verification."""

    model_config = ConfigDict(frozen=True)

    content: bytes
    media_type: str = Field(..., description="Declared Content-Type of the upload")
    filename: str | None = None

    @property
    def size(self) -> int:
        """Size of the document in bytes."""
        return len(self.content)


class RegistrationRole(str, Enum):
    """Participant role at the conference."""

    TEEN = "подросток"
    MINISTER = "служитель"


class RegistrationRequest(BaseModel):
    """Public registration form."""

    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    birth_date: str = Field(..., description="Birth date as dd/mm/yyyy")
    phone: str = Field(..., pattern=PHONE_PATTERN)
    telegram: str = Field(..., min_length=3, max_length=50)
    city: str = Field(..., min_length=2, max_length=50)
    need_accommodation: bool = False
    church: str | None = None
    role: RegistrationRole
    parent_full_name: str | None = None
    parent_phone: str | None = None
    was_before: bool = False
    consent_under_14: bool = False
    consent_donation: bool = False
    consent_personal_data: bool = False

    @field_validator("birth_date")
    @classmethod
    def validate_birth_date(cls, value: str) -> str:
        if not re.fullmatch(r"\d{2}/\d{2}/\d{4}", value):
            raise ValueError("Birth date must be in dd/mm/yyyy format")
        try:
            born = datetime.strptime(value, BIRTH_DATE_FORMAT).date()
        except ValueError:
            raise ValueError("Birth date is not a valid date") from None

        today = date.today()
        if born > today or born <= _years_before(today, 120):
            raise ValueError("Birth date is out of range")
        return value

    @property
    def born_on(self) -> date:
        return datetime.strptime(self.birth_date, BIRTH_DATE_FORMAT).date()

    def is_under(self, years: int, today: date | None = None) -> bool:
        """Whether the participant is younger than `years` on `today`."""
        today = today or date.today()
        return self.born_on > _years_before(today, years)

    @model_validator(mode="after")
    def check_consents(self) -> "RegistrationRequest":
        if self.is_under(14) and not self.consent_under_14:
            raise ValueError("Consent is required for participants under 14")
        if self.is_under(18):
            if not (self.parent_full_name or "").strip():
                raise ValueError("Parent full name is required for minors")
            if not re.fullmatch(PHONE_PATTERN, self.parent_phone or ""):
                raise ValueError("Parent phone in +7XXXXXXXXXX format is required for minors")
        if not self.consent_donation:
            raise ValueError("Donation consent is required")
        if not self.consent_personal_data:
            raise ValueError("Personal data consent is required")
        return self


class PaymentReceipt(BaseModel):
    """A verified receipt stored for a completed registration."""

    id: int
    registration_id: int
    donation_amount: Decimal
    file_name: str = Field(..., description="Original upload filename")
    file_path: str = Field(..., description="Where the receipt is stored")
    file_size: int
    verified: bool = True
    paid: bool = True
    created_at: datetime = Field(default_factory=datetime.now)


class Registration(RegistrationRequest):
    """A stored registration."""

    id: int
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: datetime | None = None
    receipt: PaymentReceipt | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


def _years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # 29 February in a non-leap target year
        return day.replace(year=day.year - years, day=28)
