"""Public registration and payment endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ...core.models import ReceiptDocument, RegistrationRequest
from ...core.registrations import RegistrationService, get_registration_service
from ...validators import FailureKind, VerificationResult

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/registrations", tags=["registrations"])

# Failures that describe the upload itself rather than its content
_FAILURE_STATUS_CODES: dict[FailureKind, int] = {
    FailureKind.OVERSIZED_DOCUMENT: 413,
    FailureKind.UNSUPPORTED_MEDIA_TYPE: 415,
}


class RegistrationCreatedResponse(BaseModel):
    """Response for a new registration."""

    registration_id: int
    message: str


class RegistrationStatusResponse(BaseModel):
    """Whether a registration has been paid for."""

    registration_id: int
    completed: bool


class FailedCheckResponse(BaseModel):
    """One failed receipt check."""

    code: str
    message: str


class PaymentCompletedResponse(BaseModel):
    """Response for an accepted receipt."""

    success: bool = True
    receipt_id: int
    verified: bool = True
    message: str


class PaymentRejectedResponse(BaseModel):
    """Response for a rejected receipt, listing every failed check."""

    success: bool = False
    failed_checks: list[FailedCheckResponse]


def rejection_response(result: VerificationResult) -> JSONResponse:
    """Map a failed verification onto an HTTP error response."""
    status_code = 422
    for kind in result.failed_checks:
        if kind in _FAILURE_STATUS_CODES:
            status_code = _FAILURE_STATUS_CODES[kind]
            break

    body = PaymentRejectedResponse(
        failed_checks=[
            FailedCheckResponse(code=kind.code, message=kind.message)
            for kind in result.failed_checks
        ],
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


@router.post("", response_model=RegistrationCreatedResponse, status_code=201)
async def create_registration(
    request: RegistrationRequest,
    service: Annotated[RegistrationService, Depends(get_registration_service)],
) -> RegistrationCreatedResponse:
    """
    Register a participant.

    The registration stays pending until a payment receipt is accepted.
    """
    registration = service.create_registration(request)
    return RegistrationCreatedResponse(
        registration_id=registration.id,
        message="Registration created, upload the payment receipt to complete it",
    )


@router.get("/{registration_id}", response_model=RegistrationStatusResponse)
async def get_registration_status(
    registration_id: int,
    service: Annotated[RegistrationService, Depends(get_registration_service)],
) -> RegistrationStatusResponse:
    """Get the completion status of a registration."""
    registration = service.store.get(registration_id)
    return RegistrationStatusResponse(
        registration_id=registration.id,
        completed=registration.is_completed,
    )


@router.post(
    "/{registration_id}/complete",
    response_model=PaymentCompletedResponse,
    responses={
        413: {"model": PaymentRejectedResponse},
        415: {"model": PaymentRejectedResponse},
        422: {"model": PaymentRejectedResponse},
    },
)
async def complete_registration(
    registration_id: int,
    receipt_file: Annotated[UploadFile, File(description="PDF payment receipt")],
    service: Annotated[RegistrationService, Depends(get_registration_service)],
):
    """
    Upload a payment receipt and complete the registration.

    The receipt is checked for the donation amount, recipient name,
    recipient INN and bank. A rejected receipt lists every failed check.
    """
    content, media_type = await service.file_handler.read_upload(receipt_file)
    logger.info(
        f"Receipt upload for registration {registration_id}: "
        f"{receipt_file.filename} ({media_type or 'no content type'}, {len(content)} bytes)"
    )

    document = ReceiptDocument(
        content=content,
        media_type=media_type,
        filename=receipt_file.filename,
    )
    completion = await service.complete_payment(registration_id, document)

    if not completion.completed:
        return rejection_response(completion.result)

    return PaymentCompletedResponse(
        receipt_id=completion.receipt.id,
        message="Payment verified, registration completed",
    )
