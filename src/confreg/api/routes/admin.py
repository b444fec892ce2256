"""Admin endpoints for reviewing registrations and receipts."""

import logging
import secrets
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from fastapi.responses import FileResponse
from pydantic import BaseModel

from ...config import Settings, get_settings
from ...core.models import PaymentReceipt, Registration, RegistrationRole
from ...core.registrations import RegistrationService, get_registration_service

logger = logging.getLogger(__name__)


async def require_admin_token(
    settings: Annotated[Settings, Depends(get_settings)],
    x_admin_token: Annotated[str | None, Header()] = None,
) -> None:
    """Reject requests without the configured admin token."""
    if not settings.admin_token:
        raise HTTPException(status_code=503, detail="Admin API is disabled")

    if not x_admin_token or not secrets.compare_digest(
        x_admin_token.encode(), settings.admin_token.encode()
    ):
        logger.warning("Rejected admin request with invalid token")
        raise HTTPException(status_code=401, detail="Invalid admin token")


router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin_token)],
)


class ReceiptInfo(BaseModel):
    """Stored receipt metadata."""

    id: int
    donation_amount: Decimal
    file_name: str
    file_size: int
    verified: bool
    paid: bool
    created_at: datetime


class RegistrationSummary(BaseModel):
    """Registration row for the admin list."""

    id: int
    full_name: str
    email: str
    phone: str
    city: str
    role: RegistrationRole
    created_at: datetime
    completed_at: datetime | None
    completed: bool


class RegistrationDetail(RegistrationSummary):
    """Full registration record."""

    first_name: str
    last_name: str
    birth_date: str
    telegram: str
    church: str | None
    need_accommodation: bool
    parent_full_name: str | None
    parent_phone: str | None
    was_before: bool
    receipt: ReceiptInfo | None


class RegistrationListResponse(BaseModel):
    """A page of registrations."""

    total: int
    offset: int
    limit: int
    items: list[RegistrationSummary]


class RegistrationStatsResponse(BaseModel):
    """Registration counts."""

    total: int
    completed: int
    pending: int


def _summary_fields(registration: Registration) -> dict:
    return {
        "id": registration.id,
        "full_name": registration.full_name,
        "email": registration.email,
        "phone": registration.phone,
        "city": registration.city,
        "role": registration.role,
        "created_at": registration.created_at,
        "completed_at": registration.completed_at,
        "completed": registration.is_completed,
    }


def _receipt_info(receipt: PaymentReceipt | None) -> ReceiptInfo | None:
    if receipt is None:
        return None
    return ReceiptInfo(**receipt.model_dump(exclude={"registration_id", "file_path"}))


@router.get("/registrations", response_model=RegistrationListResponse)
async def list_registrations(
    service: Annotated[RegistrationService, Depends(get_registration_service)],
    offset: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> RegistrationListResponse:
    """List registrations in creation order."""
    registrations = service.store.list_registrations(offset=offset, limit=limit)
    return RegistrationListResponse(
        total=service.store.count(),
        offset=offset,
        limit=limit,
        items=[RegistrationSummary(**_summary_fields(r)) for r in registrations],
    )


@router.get("/registrations/{registration_id}", response_model=RegistrationDetail)
async def get_registration(
    registration_id: int,
    service: Annotated[RegistrationService, Depends(get_registration_service)],
) -> RegistrationDetail:
    """Get a registration with its receipt metadata."""
    registration = service.store.get(registration_id)
    return RegistrationDetail(
        **_summary_fields(registration),
        first_name=registration.first_name,
        last_name=registration.last_name,
        birth_date=registration.birth_date,
        telegram=registration.telegram,
        church=registration.church,
        need_accommodation=registration.need_accommodation,
        parent_full_name=registration.parent_full_name,
        parent_phone=registration.parent_phone,
        was_before=registration.was_before,
        receipt=_receipt_info(registration.receipt),
    )


@router.get("/stats", response_model=RegistrationStatsResponse)
async def get_stats(
    service: Annotated[RegistrationService, Depends(get_registration_service)],
) -> RegistrationStatsResponse:
    """Count registrations by completion status."""
    return RegistrationStatsResponse(
        total=service.store.count(),
        completed=service.store.count_completed(),
        pending=service.store.count_pending(),
    )


@router.get("/registrations/{registration_id}/receipt")
async def download_receipt(
    registration_id: int,
    service: Annotated[RegistrationService, Depends(get_registration_service)],
):
    """Download the stored receipt PDF."""
    registration = service.store.get(registration_id)
    if registration.receipt is None:
        raise HTTPException(status_code=404, detail="Registration has no receipt")

    file_path = Path(registration.receipt.file_path)
    if not file_path.exists():
        logger.error(f"Receipt file missing for registration {registration_id}: {file_path}")
        raise HTTPException(status_code=404, detail="Receipt file not found")

    return FileResponse(
        path=file_path,
        media_type="application/pdf",
        filename=file_path.name,
    )
