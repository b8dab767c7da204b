"""
Test Configuration
==================

Pytest fixtures for warranty registration tests.
"""

import os
from collections.abc import AsyncGenerator
from dataclasses import replace
from datetime import date
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["RECORD_STORE_MODE"] = "mock"

from shared.config import RecordStoreMode  # noqa: E402
from services.registration.errors import ConflictError  # noqa: E402
from services.registration.models import (  # noqa: E402
    RegistrationUpdate,
    WarrantyRecord,
    WriteResult,
)
from services.registration.stores import (  # noqa: E402
    RecordStore,
    reset_record_store,
    set_record_store,
)


class InMemoryRecordStore(RecordStore):
    """Dict-backed record store with the same conditional-update contract."""

    def __init__(self, records: list[WarrantyRecord] | None = None) -> None:
        self.records: dict[str, WarrantyRecord] = {}
        self.find_calls: list[str] = []
        self.update_calls: list[tuple[str, RegistrationUpdate]] = []
        for record in records or []:
            self.records[record.management_id] = record

    @property
    def mode(self) -> RecordStoreMode:
        return RecordStoreMode.MOCK

    async def find_by_management_id(self, management_id: str) -> WarrantyRecord | None:
        self.find_calls.append(management_id)
        record = self.records.get(management_id)
        return replace(record) if record is not None else None

    async def update_by_internal_id(
        self,
        record: WarrantyRecord,
        changes: RegistrationUpdate,
    ) -> WriteResult:
        self.update_calls.append((record.internal_id, changes))
        current = next(r for r in self.records.values() if r.internal_id == record.internal_id)
        if current.is_registered:
            raise ConflictError()

        revision = str(int(current.revision or "1") + 1)
        self.records[current.management_id] = replace(
            current, revision=revision, **changes.as_fields()
        )
        return WriteResult(id=current.internal_id, revision=revision)


@pytest.fixture
def unregistered_record() -> WarrantyRecord:
    """Record created by staff, not yet registered by the customer."""
    return WarrantyRecord(
        internal_id="102",
        management_id="URC0000002",
        revision="1",
        maker="Lenovo",
        model="ThinkPad X1 Carbon",
        serial="PF-2X9K3L",
        purchase_site="Mercari",
        purchase_date=date(2025, 1, 10),
        purchase_amount=48000,
    )


@pytest.fixture
def registered_record() -> WarrantyRecord:
    """Record that already went through registration."""
    return WarrantyRecord(
        internal_id="103",
        management_id="URC0000003",
        revision="4",
        full_name="山田 太郎",
        furigana="ヤマダ タロウ",
        phone="090-1111-2222",
        postal_code="150-0001",
        address="東京都渋谷区神宮前1-1-1",
        maker="Dell",
        model="XPS 13",
        serial="DL-77AB12",
        purchase_site="Yahoo Auctions",
        purchase_date=date(2025, 3, 1),
        warranty_plan="Mプラン（6ヶ月）",
        warranty_period=6,
        warranty_end_date=date(2025, 9, 1),
        review_pledge=True,
        terms_agreed=True,
    )


@pytest.fixture
def memory_store(
    unregistered_record: WarrantyRecord,
    registered_record: WarrantyRecord,
) -> InMemoryRecordStore:
    """Store seeded with one unregistered and one registered record."""
    return InMemoryRecordStore([unregistered_record, registered_record])


@pytest_asyncio.fixture
async def api_client(memory_store: InMemoryRecordStore) -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the registration service, bound to the memory store."""
    from services.registration.main import app

    set_record_store(memory_store)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    reset_record_store()


@pytest.fixture
def registration_payload() -> dict[str, Any]:
    """Valid registration form body for URC0000002."""
    return {
        "managementId": "URC0000002",
        "fullName": "佐藤花子",
        "furigana": "サトウ ハナコ",
        "postalCode": "1500001",
        "address": "東京都渋谷区神宮前2-2-2",
        "phone": "08012345678",
        "warrantyPlan": "m",
        "reviewPledge": True,
        "termsAgreed": True,
    }
