"""
Registration Service
====================

Record lookup/reconciliation, the registration writer and the status
query, on top of a RecordStore.

Version: 0.1.0
"""

from __future__ import annotations

from datetime import date

from dateutil.relativedelta import relativedelta
from fastapi import status

from shared.logging import get_logger
from services.registration.errors import (
    AuthMismatchError,
    ConflictError,
    NeedsRegistrationError,
    NotFoundError,
)
from services.registration.models import (
    PLAN_CATALOGUE,
    Classification,
    LookupResult,
    RegistrationUpdate,
    WarrantyRecord,
    WriteResult,
    classify,
)
from services.registration.stores import RecordStore, get_record_store
from services.registration.validation import (
    CheckManagementIdRequest,
    RegistrationRequest,
    StatusRequest,
    phone_suffix,
)


logger = get_logger(__name__)


def warranty_end_date(purchase_date: date | None, months: int) -> date | None:
    """End of coverage counted in calendar months from purchase."""
    if purchase_date is None:
        return None
    return purchase_date + relativedelta(months=months)


def build_update(record: WarrantyRecord, request: RegistrationRequest) -> RegistrationUpdate:
    """Fields merged into the record for a validated registration."""
    plan = PLAN_CATALOGUE[request.warranty_plan]

    # An end date already set by staff is kept
    end_date = None
    if record.warranty_end_date is None:
        end_date = warranty_end_date(record.purchase_date, plan.months)

    return RegistrationUpdate(
        phone=request.phone,
        full_name=request.full_name,
        furigana=request.furigana,
        postal_code=request.postal_code,
        address=request.address,
        warranty_plan=plan.label,
        warranty_period=plan.months,
        warranty_end_date=end_date,
        review_pledge=request.review_pledge,
        terms_agreed=request.terms_agreed,
    )


class RegistrationService:
    """
    Warranty registration flow.

    Each operation performs at most one read and one write against the
    store. Nothing is retried; store failures propagate as UpstreamError.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def lookup(self, management_id: str, phone: str | None = None) -> LookupResult:
        """
        Find and classify the record for a management id.

        Args:
            management_id: Normalized management id
            phone: Optional phone to compare against a registered record

        Returns:
            LookupResult; `phone_matches` is set only for registered records
            when a phone was supplied
        """
        record = await self.store.find_by_management_id(management_id)
        result = LookupResult(
            management_id=management_id,
            classification=classify(record),
            record=record,
        )

        if (
            record is not None
            and result.classification == Classification.REGISTERED
            and phone is not None
        ):
            result.phone_matches = phone_suffix(record.phone) == phone_suffix(phone)

        logger.info(
            "management_id_lookup",
            management_id=management_id,
            classification=result.classification.value,
            suffix_matches=result.phone_matches,
        )
        return result

    async def check_management_id(self, request: CheckManagementIdRequest) -> WarrantyRecord:
        """
        Confirm a management id can be registered.

        Raises:
            NotFoundError: no record for the id
            AuthMismatchError: registered, and the phone suffix differs (403)
            ConflictError: already registered
        """
        result = await self.lookup(request.management_id, request.phone)
        record = result.record

        if record is None or result.classification == Classification.NOT_FOUND:
            raise NotFoundError()

        if result.classification == Classification.REGISTERED:
            # Only a stored phone can be compared
            if record.phone and result.phone_matches is False:
                raise AuthMismatchError(status_code=status.HTTP_403_FORBIDDEN)
            raise ConflictError()

        return record

    async def register(self, request: RegistrationRequest) -> WriteResult:
        """
        Register an unregistered record.

        Raises:
            NotFoundError: no record for the id
            ConflictError: already registered, including a concurrent write
                that won the race
        """
        result = await self.lookup(request.management_id)
        record = result.record

        if record is None or result.classification == Classification.NOT_FOUND:
            raise NotFoundError()
        if result.classification == Classification.REGISTERED:
            raise ConflictError()

        changes = build_update(record, request)
        written = await self.store.update_by_internal_id(record, changes)

        logger.info(
            "registration_committed",
            management_id=request.management_id,
            record_id=written.id,
            revision=written.revision,
            warranty_plan=request.warranty_plan.value,
        )
        return written

    async def get_status(self, request: StatusRequest) -> WarrantyRecord:
        """
        Fetch a registered record for display.

        Raises:
            NeedsRegistrationError: absent or not yet registered
            AuthMismatchError: phone suffix differs (401)
        """
        result = await self.lookup(request.management_id, request.phone_last4)
        record = result.record

        if record is None or result.classification != Classification.REGISTERED:
            raise NeedsRegistrationError()

        if not result.phone_matches:
            raise AuthMismatchError(
                "The management ID or phone number does not match.",
                status_code=status.HTTP_401_UNAUTHORIZED,
            )

        return record


def get_registration_service() -> RegistrationService:
    """FastAPI dependency returning a service bound to the configured store."""
    return RegistrationService(get_record_store())
