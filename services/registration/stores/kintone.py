"""
kintone Record Store
====================

Warranty records kept in a kintone app, accessed over the kintone REST API
with an app API token.

kintone addresses fields by opaque field codes. The mapping from semantic
field names to codes lives here and nowhere else.

Version: 0.1.0
"""

from __future__ import annotations

from datetime import date
from typing import Any

import httpx

from shared.config import RecordStoreMode
from shared.config.settings import KintoneSettings
from shared.logging import get_logger
from services.registration.errors import ConflictError, UpstreamError
from services.registration.models import RegistrationUpdate, WarrantyRecord, WriteResult
from services.registration.stores.base import RecordStore


logger = get_logger(__name__)


# Field codes of the production app. Other semantic fields are read and
# written only when mapped through KINTONE_FIELD_CODES.
DEFAULT_FIELD_CODES: dict[str, str] = {
    "management_id": "文字列__1行__14",
    "phone": "文字列__1行__4",
    "full_name": "name_1",
    "postal_code": "文字列__1行__5",
    "address": "address_1",
}

_TEXT_FIELDS = (
    "full_name",
    "furigana",
    "phone",
    "postal_code",
    "address",
    "maker",
    "model",
    "serial",
    "purchase_site",
    "warranty_plan",
)
_INT_FIELDS = ("purchase_amount", "warranty_period")
_DATE_FIELDS = ("purchase_date", "warranty_end_date")
_BOOL_FIELDS = ("review_pledge", "terms_agreed")

_TRUE_VALUES = {"true", "1", "yes", "はい"}


class KintoneRecordStore(RecordStore):
    """
    Record store backed by the kintone REST API.

    Lookup: GET /k/v1/records.json with an equality query on the
    management id field. Update: PUT /k/v1/record.json by record id with
    the revision that was read, so a concurrent registration makes the
    second write fail instead of overwriting the first.
    """

    def __init__(
        self,
        config: KintoneSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            config: kintone connection settings
            client: Pre-built HTTP client (tests inject a mock transport)
        """
        self.config = config
        self.field_codes = {**DEFAULT_FIELD_CODES, **config.field_codes}
        self._client = client

    @property
    def mode(self) -> RecordStoreMode:
        return RecordStoreMode.KINTONE

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout_seconds),
                headers={"X-Cybozu-API-Token": self.config.api_token.get_secret_value()},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Send a request and decode the JSON body, mapping failures to UpstreamError."""
        client = self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(
                "kintone_request_failed",
                method=method,
                path=path,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise UpstreamError(detail=f"kintone request failed: {e}") from e

        if response.status_code == httpx.codes.CONFLICT and method == "PUT":
            logger.warning("kintone_revision_conflict", path=path, body=response.text)
            raise ConflictError()

        if response.is_error:
            logger.error(
                "kintone_error_response",
                method=method,
                path=path,
                status=response.status_code,
                body=response.text,
            )
            raise UpstreamError(
                detail=f"kintone returned {response.status_code}: {response.text}",
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.error("kintone_malformed_response", path=path, body=response.text[:500])
            raise UpstreamError(detail="kintone returned a non-JSON response") from e

        if not isinstance(payload, dict):
            raise UpstreamError(detail="kintone returned an unexpected JSON document")
        return payload

    async def find_by_management_id(self, management_id: str) -> WarrantyRecord | None:
        """Query the app for the record holding this management id."""
        code = self.field_codes["management_id"]
        query = f'{code} = "{management_id}" limit 1'

        payload = await self._request(
            "GET",
            "/records.json",
            params={"app": self.config.app_id, "query": query},
        )

        records = payload.get("records")
        if not isinstance(records, list):
            raise UpstreamError(detail="kintone response has no records list")
        if not records:
            logger.debug("kintone_record_not_found", management_id=management_id)
            return None

        return self._to_record(records[0], management_id)

    async def update_by_internal_id(
        self,
        record: WarrantyRecord,
        changes: RegistrationUpdate,
    ) -> WriteResult:
        """Write mapped registration fields to the record, guarded by its revision."""
        fields = changes.as_fields()
        mapped = {name: value for name, value in fields.items() if name in self.field_codes}
        unmapped = sorted(set(fields) - set(mapped))
        if unmapped:
            logger.debug("kintone_fields_unmapped", fields=unmapped)

        body: dict[str, Any] = {
            "app": self.config.app_id,
            "id": record.internal_id,
            "record": {
                self.field_codes[name]: {"value": _to_kintone_value(value)}
                for name, value in mapped.items()
            },
        }
        if record.revision is not None:
            body["revision"] = record.revision

        payload = await self._request("PUT", "/record.json", json=body)

        revision = payload.get("revision")
        logger.info(
            "kintone_record_updated",
            record_id=record.internal_id,
            revision=revision,
        )
        return WriteResult(id=record.internal_id, revision=str(revision) if revision else None)

    def _value(self, raw: dict[str, Any], name: str) -> Any:
        """Raw field value for a semantic name, None when unmapped or absent."""
        code = self.field_codes.get(name)
        if code is None or code not in raw:
            return None
        field = raw[code]
        if not isinstance(field, dict):
            raise UpstreamError(detail=f"kintone field {code} is malformed")
        return field.get("value")

    def _to_record(self, raw: dict[str, Any], management_id: str) -> WarrantyRecord:
        """Convert a kintone REST record to a WarrantyRecord."""
        try:
            internal_id = str(raw["$id"]["value"])
            revision_field = raw.get("$revision")
            revision = str(revision_field["value"]) if revision_field else None
        except (KeyError, TypeError) as e:
            raise UpstreamError(detail="kintone record has no $id") from e

        values: dict[str, Any] = {}
        for name in _TEXT_FIELDS:
            values[name] = str(self._value(raw, name) or "")
        try:
            for name in _INT_FIELDS:
                value = self._value(raw, name)
                values[name] = int(value) if value not in (None, "") else None
            for name in _DATE_FIELDS:
                value = self._value(raw, name)
                values[name] = date.fromisoformat(value) if value else None
        except (TypeError, ValueError) as e:
            raise UpstreamError(detail=f"kintone record {internal_id} is malformed: {e}") from e
        for name in _BOOL_FIELDS:
            values[name] = _to_bool(self._value(raw, name))

        return WarrantyRecord(
            internal_id=internal_id,
            management_id=str(self._value(raw, "management_id") or management_id),
            revision=revision,
            **values,
        )


def _to_bool(value: Any) -> bool | None:
    """Interpret text, dropdown and checkbox values as a boolean."""
    if value is None or value == "":
        return None
    if isinstance(value, list):
        return bool(value)
    return str(value).strip().lower() in _TRUE_VALUES


def _to_kintone_value(value: Any) -> str:
    """kintone takes every scalar field value as a string."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    return str(value)
