"""
Record Store Interface
======================

Common contract for the warranty record backing stores.

Version: 0.1.0
"""

from abc import ABC, abstractmethod
from typing import Any

from shared.config import RecordStoreMode
from services.registration.models import RegistrationUpdate, WarrantyRecord, WriteResult


class RecordStore(ABC):
    """
    Abstract backing store for warranty records.

    Implementations:
    - KintoneRecordStore: remote kintone app over REST
    - RelationalRecordStore: local SQL table
    - MockRecordStore: explicit offline mode, nothing is ever found
    """

    @property
    @abstractmethod
    def mode(self) -> RecordStoreMode:
        """Configured store mode."""
        ...

    @abstractmethod
    async def find_by_management_id(self, management_id: str) -> WarrantyRecord | None:
        """
        Find the record for a management id.

        Args:
            management_id: Normalized `URC` + 7 digit id

        Returns:
            The matching record, or None if absent

        Raises:
            UpstreamError: store unreachable or response malformed
        """
        ...

    @abstractmethod
    async def update_by_internal_id(
        self,
        record: WarrantyRecord,
        changes: RegistrationUpdate,
    ) -> WriteResult:
        """
        Merge registration fields into an unregistered record.

        The write is conditional: it only applies while the record is still
        unregistered as of the revision that was read.

        Args:
            record: Record returned by find_by_management_id
            changes: Fields to merge

        Returns:
            Identifier and revision assigned by the store

        Raises:
            ConflictError: the record was registered in the meantime
            UpstreamError: store unreachable or response malformed
        """
        ...

    async def health_check(self) -> dict[str, Any]:
        """Report store health."""
        return {"status": "healthy", "mode": self.mode.value}

    async def close(self) -> None:
        """Release connections."""
        return None
