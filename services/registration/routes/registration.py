"""
Registration Routes
===================

API endpoints for management id checks, warranty registration and
warranty status lookup.

Request bodies are taken as raw JSON and passed through the validation
gate, so malformed input is reported per field with a 400.

Version: 0.1.0
"""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Body, Depends

from shared.models.common import ApiModel, ErrorResponse
from services.registration.models import WarrantyRecord
from services.registration.service import RegistrationService, get_registration_service
from services.registration.validation import (
    CheckManagementIdRequest,
    RegistrationRequest,
    StatusRequest,
    validate_payload,
)


router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================


class CheckManagementIdResponse(ApiModel):
    """Management id can be registered."""

    ok: bool = True
    message: str = "Management ID confirmed."
    purchase_amount: int | None = None


class RegistrationResponse(ApiModel):
    """Registration committed."""

    ok: bool = True
    message: str = "Your warranty registration has been received."
    id: str
    revision: str | None = None


class WarrantyStatusView(ApiModel):
    """Projection of a registered record for display; absent values are empty."""

    management_id: str
    full_name: str = ""
    phone: str = ""
    postal_code: str = ""
    address: str = ""
    maker: str = ""
    model: str = ""
    serial: str = ""
    purchase_site: str = ""
    purchase_date: str = ""
    warranty_plan: str = ""
    warranty_period: str = ""
    warranty_end_date: str = ""
    remaining_days: int | None = None

    @classmethod
    def from_record(cls, record: WarrantyRecord, today: date | None = None) -> WarrantyStatusView:
        """Create view from WarrantyRecord."""
        today = today or date.today()
        end_date = record.warranty_end_date
        return cls(
            management_id=record.management_id,
            full_name=record.full_name,
            phone=record.phone,
            postal_code=record.postal_code,
            address=record.address,
            maker=record.maker,
            model=record.model,
            serial=record.serial,
            purchase_site=record.purchase_site,
            purchase_date=record.purchase_date.isoformat() if record.purchase_date else "",
            warranty_plan=record.warranty_plan,
            warranty_period=str(record.warranty_period) if record.warranty_period else "",
            warranty_end_date=end_date.isoformat() if end_date else "",
            remaining_days=(end_date - today).days if end_date else None,
        )


class StatusResponse(ApiModel):
    """Warranty status."""

    ok: bool = True
    data: WarrantyStatusView


_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    404: {"model": ErrorResponse, "description": "Management ID not found"},
    500: {"model": ErrorResponse, "description": "Internal error"},
}


# =============================================================================
# Endpoints
# =============================================================================


@router.post(
    "/check-management-id",
    response_model=CheckManagementIdResponse,
    response_model_exclude_none=True,
    responses={
        **_ERROR_RESPONSES,
        403: {"model": ErrorResponse, "description": "Phone does not match a registered record"},
        409: {"model": ErrorResponse, "description": "Already registered"},
    },
    summary="Check a management ID before registration",
)
async def check_management_id(
    payload: Any = Body(...),
    service: RegistrationService = Depends(get_registration_service),
) -> CheckManagementIdResponse:
    """
    Confirm that a management ID exists and is not yet registered.

    When the ID is already registered and a phone number is supplied, the
    last four digits are compared so the caller can tell a wrong
    combination apart from a repeat registration.
    """
    request = validate_payload(CheckManagementIdRequest, payload)
    record = await service.check_management_id(request)
    return CheckManagementIdResponse(purchase_amount=record.purchase_amount)


@router.post(
    "/register",
    response_model=RegistrationResponse,
    response_model_exclude_none=True,
    responses={
        **_ERROR_RESPONSES,
        409: {"model": ErrorResponse, "description": "Already registered"},
    },
    summary="Register a warranty",
)
async def register(
    payload: Any = Body(...),
    service: RegistrationService = Depends(get_registration_service),
) -> RegistrationResponse:
    """Merge customer details into an unregistered warranty record."""
    request = validate_payload(RegistrationRequest, payload)
    written = await service.register(request)
    return RegistrationResponse(id=written.id, revision=written.revision)


@router.post(
    "/status",
    response_model=StatusResponse,
    responses={
        **_ERROR_RESPONSES,
        401: {"model": ErrorResponse, "description": "Phone does not match"},
    },
    summary="Look up warranty status",
)
async def warranty_status(
    payload: Any = Body(...),
    service: RegistrationService = Depends(get_registration_service),
) -> StatusResponse:
    """
    Return the full warranty record for a registered management ID.

    Unregistered or unknown IDs answer 404 with `needsRegistration` so the
    caller can send the user to the registration form.
    """
    request = validate_payload(StatusRequest, payload)
    record = await service.get_status(request)
    return StatusResponse(data=WarrantyStatusView.from_record(record))
