"""
Relational Record Store
=======================

Warranty records kept in a single SQL table keyed by management id,
accessed through SQLAlchemy 2.0 async sessions.

Version: 0.1.0
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Integer,
    String,
    Text,
    func,
    or_,
    select,
    text,
    update,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.config import RecordStoreMode
from shared.database.postgres import Base, PostgresClient, postgres_session
from shared.logging import get_logger
from services.registration.errors import ConflictError, UpstreamError
from services.registration.models import RegistrationUpdate, WarrantyRecord, WriteResult
from services.registration.stores.base import RecordStore


logger = get_logger(__name__)


class WarrantyRecordRow(Base):
    """
    SQLAlchemy model for warranty records.

    Rows are created by back-office tooling with the management id and
    product fields; customer columns stay empty until registration.
    """

    __tablename__ = "warranty_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    management_id = Column(String(10), nullable=False, unique=True, index=True)
    revision = Column(Integer, nullable=False, default=1)

    # Customer
    full_name = Column(String(255))
    furigana = Column(String(255))
    phone = Column(String(20))
    postal_code = Column(String(8))
    address = Column(Text)

    # Product
    maker = Column(String(255))
    model = Column(String(255))
    serial = Column(String(255))
    purchase_site = Column(String(255))
    purchase_date = Column(Date)
    purchase_amount = Column(Integer)

    # Warranty
    warranty_plan = Column(String(64))
    warranty_period = Column(Integer)
    warranty_end_date = Column(Date)
    review_pledge = Column(Boolean)
    terms_agreed = Column(Boolean)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_record(self) -> WarrantyRecord:
        """Convert to the store-agnostic record."""
        return WarrantyRecord(
            internal_id=str(self.id),
            management_id=self.management_id,
            revision=str(self.revision),
            full_name=self.full_name or "",
            furigana=self.furigana or "",
            phone=self.phone or "",
            postal_code=self.postal_code or "",
            address=self.address or "",
            maker=self.maker or "",
            model=self.model or "",
            serial=self.serial or "",
            purchase_site=self.purchase_site or "",
            purchase_date=self.purchase_date,
            purchase_amount=self.purchase_amount,
            warranty_plan=self.warranty_plan or "",
            warranty_period=self.warranty_period,
            warranty_end_date=self.warranty_end_date,
            review_pledge=self.review_pledge,
            terms_agreed=self.terms_agreed,
        )


def _is_empty(column: Any) -> Any:
    return or_(column.is_(None), column == "")


class RelationalRecordStore(RecordStore):
    """Record store backed by the `warranty_records` table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            session_factory: Session factory; defaults to the shared PostgreSQL engine
        """
        self._session_factory = session_factory

    @property
    def mode(self) -> RecordStoreMode:
        return RecordStoreMode.RELATIONAL

    def _factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = PostgresClient.get_session_factory()
        return self._session_factory

    async def find_by_management_id(self, management_id: str) -> WarrantyRecord | None:
        """Select the row for a management id."""
        try:
            async with postgres_session(self._factory()) as session:
                result = await session.execute(
                    select(WarrantyRecordRow).where(
                        WarrantyRecordRow.management_id == management_id
                    )
                )
                row = result.scalar_one_or_none()
                record = row.to_record() if row is not None else None
        except (SQLAlchemyError, OSError) as e:
            logger.error("warranty_record_query_failed", error=str(e))
            raise UpstreamError(detail=f"database query failed: {e}") from e

        return record

    async def update_by_internal_id(
        self,
        record: WarrantyRecord,
        changes: RegistrationUpdate,
    ) -> WriteResult:
        """Update the row only while its name and phone are still empty."""
        statement = (
            update(WarrantyRecordRow)
            .where(
                WarrantyRecordRow.id == int(record.internal_id),
                _is_empty(WarrantyRecordRow.full_name),
                _is_empty(WarrantyRecordRow.phone),
            )
            .values(
                **changes.as_fields(),
                revision=WarrantyRecordRow.revision + 1,
                updated_at=func.now(),
            )
            .returning(WarrantyRecordRow.revision)
            .execution_options(synchronize_session=False)
        )

        try:
            async with postgres_session(self._factory()) as session:
                result = await session.execute(statement)
                revision = result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "warranty_record_update_failed",
                record_id=record.internal_id,
                error=str(e),
            )
            raise UpstreamError(detail=f"database update failed: {e}") from e

        if revision is None:
            logger.warning("warranty_record_update_conflict", record_id=record.internal_id)
            raise ConflictError()

        logger.info(
            "warranty_record_updated",
            record_id=record.internal_id,
            revision=revision,
        )
        return WriteResult(id=record.internal_id, revision=str(revision))

    async def health_check(self) -> dict[str, Any]:
        """Report database health."""
        try:
            async with postgres_session(self._factory()) as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.error("warranty_record_health_check_failed", error=str(e))
            return {"status": "unhealthy", "mode": self.mode.value, "error": str(e)}
        return {"status": "healthy", "mode": self.mode.value}

    async def close(self) -> None:
        """Dispose of the shared engine."""
        await PostgresClient.close()
