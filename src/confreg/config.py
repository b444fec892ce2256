"""Configuration management using pydantic-settings."""

from decimal import Decimal
from functools import lru_cache
import json
from pathlib import Path
from typing import Annotated, Iterable

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .core.models import ExpectedPaymentFacts


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Expected payment facts
    expected_amount: Decimal = Field(
        default=Decimal("500.00"),
        gt=0,
        description="Donation amount every receipt must show",
    )
    expected_currency: str = Field(default="RUB", min_length=3, max_length=3)
    recipient_name_variants: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [
            "церковь слово жизни",
            "местная религиозная организация христиан веры евангельской "
            '(пятидесятников) церковь "слово жизни" саратов',
        ],
        description="Accepted spellings of the recipient name (JSON list or comma-separated)",
    )
    recipient_tax_id: str = Field(
        default="6453041398",
        description="Recipient INN",
    )
    recipient_bank_variants: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["пао сбербанк", "сбербанк"],
        description="Accepted spellings of the receiving bank",
    )

    # Receipt processing
    max_receipt_size_mb: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum receipt size in MB",
    )
    max_pdf_pages: int = Field(
        default=10,
        ge=1,
        le=200,
        description="Receipts with more pages are rejected as unreadable",
    )
    pdf_parse_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Time budget for text extraction of a single receipt",
    )
    verification_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Host-level timeout around one verification call",
    )
    max_concurrent_verifications: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Verifications allowed to run at the same time",
    )
    upload_dir: Path = Field(
        default=Path("uploads/receipts"),
        description="Directory to store accepted receipts",
    )

    # Admin API
    admin_token: str = Field(
        default="",
        description="Shared token for the admin API; empty disables it",
    )

    # Server Settings
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    debug: bool = Field(default=False)

    # CORS
    cors_allowed_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        description="Comma-separated list of allowed CORS origins",
    )

    @staticmethod
    def _split_csv(value: str) -> list[str]:
        return [item.strip() for item in value.split(",") if item.strip()]

    @field_validator(
        "recipient_name_variants",
        "recipient_bank_variants",
        "cors_allowed_origins",
        mode="before",
    )
    @classmethod
    def parse_string_list(cls, value: str | Iterable[str]) -> list[str]:
        """Allow JSON arrays or comma-separated env strings."""
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return []
            if text.startswith("["):
                parsed = json.loads(text)
                if not isinstance(parsed, list):
                    raise ValueError("Expected a JSON list")
                return [str(item).strip() for item in parsed if str(item).strip()]
            return cls._split_csv(text)
        return list(value)

    @property
    def max_receipt_size_bytes(self) -> int:
        """Maximum receipt size in bytes."""
        return self.max_receipt_size_mb * 1024 * 1024

    @property
    def expected_payment_facts(self) -> ExpectedPaymentFacts:
        """Facts every uploaded receipt is checked against."""
        return ExpectedPaymentFacts(
            amount=self.expected_amount,
            currency=self.expected_currency,
            recipient_name_variants=frozenset(self.recipient_name_variants),
            recipient_tax_id=self.recipient_tax_id,
            recipient_bank_variants=frozenset(self.recipient_bank_variants),
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
