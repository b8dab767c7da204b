"""
Mock Record Store
=================

Offline mode used when no backing store is configured.

Version: 0.1.0
"""

from typing import Any

from shared.config import RecordStoreMode
from shared.logging import get_logger
from services.registration.errors import NotFoundError
from services.registration.models import RegistrationUpdate, WarrantyRecord, WriteResult
from services.registration.stores.base import RecordStore


logger = get_logger(__name__)


class MockRecordStore(RecordStore):
    """
    Record store that holds nothing.

    Every lookup reports "not found", so registrations are rejected with
    404 instead of being silently accepted.
    """

    def __init__(self, reason: str = "configured") -> None:
        """
        Initialize the mock store.

        Args:
            reason: Why mock mode is active, reported by health checks
        """
        self.reason = reason

    @property
    def mode(self) -> RecordStoreMode:
        return RecordStoreMode.MOCK

    async def find_by_management_id(self, management_id: str) -> WarrantyRecord | None:
        logger.debug("mock_store_lookup", management_id=management_id)
        return None

    async def update_by_internal_id(
        self,
        record: WarrantyRecord,
        changes: RegistrationUpdate,
    ) -> WriteResult:
        raise NotFoundError()

    async def health_check(self) -> dict[str, Any]:
        return {"status": "healthy", "mode": self.mode.value, "reason": self.reason}
