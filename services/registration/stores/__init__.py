"""
Record Stores
=============

Backing stores for warranty records behind one interface.

Supports:
- kintone (remote REST API)
- relational (SQL table via SQLAlchemy)
- mock (offline, nothing is ever found)

The implementation is chosen once, from settings, when the service starts.

Usage:
    from services.registration.stores import get_record_store

    store = get_record_store()
    record = await store.find_by_management_id("URC0000002")
"""

from shared.config import RecordStoreMode, Settings, settings
from shared.logging import get_logger
from services.registration.stores.base import RecordStore
from services.registration.stores.kintone import KintoneRecordStore
from services.registration.stores.mock import MockRecordStore
from services.registration.stores.relational import RelationalRecordStore, WarrantyRecordRow


logger = get_logger(__name__)

_store: RecordStore | None = None


def build_record_store(config: Settings) -> RecordStore:
    """
    Build the record store selected by configuration.

    Missing kintone credentials degrade to mock mode instead of failing
    startup; the fallback is logged as a warning so it is visible.

    Args:
        config: Application settings

    Returns:
        RecordStore instance
    """
    mode = config.record_store_mode

    if mode == RecordStoreMode.MOCK:
        logger.warning("record_store_mock_mode", reason="RECORD_STORE_MODE=mock")
        return MockRecordStore(reason="configured")

    if mode == RecordStoreMode.RELATIONAL:
        logger.info("record_store_selected", mode=mode.value)
        return RelationalRecordStore()

    if config.kintone.mock_mode:
        logger.warning("record_store_mock_mode", reason="KINTONE_MOCK_MODE=true")
        return MockRecordStore(reason="kintone_mock_mode")

    if not config.kintone.is_configured:
        logger.warning(
            "record_store_mock_mode",
            reason="kintone credentials missing",
            requested_mode=mode.value,
            missing=[
                name
                for name, value in (
                    ("KINTONE_DOMAIN", config.kintone.domain),
                    ("KINTONE_APP_ID", config.kintone.app_id),
                    ("KINTONE_API_TOKEN", config.kintone.api_token.get_secret_value()),
                )
                if not value
            ],
        )
        return MockRecordStore(reason="kintone_not_configured")

    logger.info(
        "record_store_selected",
        mode=RecordStoreMode.KINTONE.value,
        domain=config.kintone.domain,
        app_id=config.kintone.app_id,
    )
    return KintoneRecordStore(config.kintone)


def get_record_store() -> RecordStore:
    """
    Get the configured record store instance.

    Returns:
        RecordStore instance based on settings
    """
    global _store

    if _store is None:
        _store = build_record_store(settings)
    return _store


def set_record_store(store: RecordStore) -> None:
    """
    Set a custom record store.

    Args:
        store: RecordStore instance
    """
    global _store
    _store = store
    logger.info("record_store_set", mode=store.mode.value)


def reset_record_store() -> None:
    """Reset the store to be re-initialized."""
    global _store
    _store = None


__all__ = [
    "RecordStore",
    "KintoneRecordStore",
    "MockRecordStore",
    "RelationalRecordStore",
    "WarrantyRecordRow",
    "build_record_store",
    "get_record_store",
    "set_record_store",
    "reset_record_store",
]
