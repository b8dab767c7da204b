"""
kintone Record Store Tests
==========================

Tests for the kintone REST store against a mocked HTTP transport.

Version: 0.1.0
"""

import json
from collections.abc import Callable
from datetime import date
from typing import Any

import httpx
import pytest

from shared.config.settings import KintoneSettings
from services.registration.errors import ConflictError, UpstreamError
from services.registration.models import RegistrationUpdate, WarrantyRecord
from services.registration.stores import KintoneRecordStore


Handler = Callable[[httpx.Request], httpx.Response]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def kintone_config() -> KintoneSettings:
    return KintoneSettings(
        domain="example.cybozu.com",
        app_id="42",
        api_token="test-token",
        field_codes={"maker": "メーカー", "purchase_date": "購入日", "furigana": "フリガナ"},
    )


@pytest.fixture
def requests_seen() -> list[httpx.Request]:
    return []


@pytest.fixture
def make_store(
    kintone_config: KintoneSettings,
    requests_seen: list[httpx.Request],
) -> Callable[[Handler], KintoneRecordStore]:
    """Build a store whose HTTP client answers with the given handler."""

    def factory(handler: Handler) -> KintoneRecordStore:
        def recording(request: httpx.Request) -> httpx.Response:
            requests_seen.append(request)
            return handler(request)

        client = httpx.AsyncClient(
            transport=httpx.MockTransport(recording),
            base_url=kintone_config.base_url,
            headers={"X-Cybozu-API-Token": kintone_config.api_token.get_secret_value()},
        )
        return KintoneRecordStore(kintone_config, client=client)

    return factory


def kintone_record(**fields: Any) -> dict[str, Any]:
    """Raw kintone record with $id and $revision."""
    record: dict[str, Any] = {
        "$id": {"type": "__ID__", "value": "7"},
        "$revision": {"type": "__REVISION__", "value": "3"},
        "文字列__1行__14": {"type": "SINGLE_LINE_TEXT", "value": "URC0000002"},
        "name_1": {"type": "SINGLE_LINE_TEXT", "value": ""},
        "文字列__1行__4": {"type": "SINGLE_LINE_TEXT", "value": ""},
        "メーカー": {"type": "SINGLE_LINE_TEXT", "value": "Lenovo"},
        "購入日": {"type": "DATE", "value": "2025-01-10"},
    }
    for code, value in fields.items():
        record[code] = {"type": "SINGLE_LINE_TEXT", "value": value}
    return record


@pytest.fixture
def registration_update() -> RegistrationUpdate:
    return RegistrationUpdate(
        phone="080-1234-5678",
        full_name="佐藤 花子",
        furigana="サトウ ハナコ",
        postal_code="150-0001",
        address="東京都渋谷区神宮前2-2-2",
        warranty_plan="Mプラン（6ヶ月）",
        warranty_period=6,
        warranty_end_date=date(2025, 7, 10),
        review_pledge=True,
        terms_agreed=True,
    )


# =============================================================================
# Lookup Tests
# =============================================================================


class TestKintoneLookup:
    """Tests for find_by_management_id."""

    @pytest.mark.asyncio
    async def test_query_and_headers(
        self,
        make_store: Callable[[Handler], KintoneRecordStore],
        requests_seen: list[httpx.Request],
    ) -> None:
        store = make_store(lambda request: httpx.Response(200, json={"records": []}))

        assert await store.find_by_management_id("URC0000001") is None

        request = requests_seen[0]
        assert request.method == "GET"
        assert request.url.path == "/k/v1/records.json"
        assert request.url.params["app"] == "42"
        assert request.url.params["query"] == '文字列__1行__14 = "URC0000001" limit 1'
        assert request.headers["X-Cybozu-API-Token"] == "test-token"

    @pytest.mark.asyncio
    async def test_record_parsed(
        self,
        make_store: Callable[[Handler], KintoneRecordStore],
    ) -> None:
        store = make_store(
            lambda request: httpx.Response(200, json={"records": [kintone_record()]})
        )

        record = await store.find_by_management_id("URC0000002")

        assert record is not None
        assert record.internal_id == "7"
        assert record.revision == "3"
        assert record.management_id == "URC0000002"
        assert record.maker == "Lenovo"
        assert record.purchase_date == date(2025, 1, 10)
        # Unmapped fields stay empty
        assert record.serial == ""
        assert record.warranty_end_date is None
        assert record.is_registered is False

    @pytest.mark.asyncio
    async def test_registered_record(
        self,
        make_store: Callable[[Handler], KintoneRecordStore],
    ) -> None:
        raw = kintone_record(**{"name_1": "山田 太郎", "文字列__1行__4": "090-1111-2222"})
        store = make_store(lambda request: httpx.Response(200, json={"records": [raw]}))

        record = await store.find_by_management_id("URC0000002")

        assert record is not None
        assert record.full_name == "山田 太郎"
        assert record.phone == "090-1111-2222"
        assert record.is_registered is True

    @pytest.mark.asyncio
    async def test_error_status(
        self,
        make_store: Callable[[Handler], KintoneRecordStore],
    ) -> None:
        store = make_store(
            lambda request: httpx.Response(520, json={"code": "GAIA_IL23", "message": "down"})
        )

        with pytest.raises(UpstreamError) as exc_info:
            await store.find_by_management_id("URC0000002")

        assert "520" in exc_info.value.detail
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_network_failure(
        self,
        make_store: Callable[[Handler], KintoneRecordStore],
    ) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        store = make_store(refuse)

        with pytest.raises(UpstreamError):
            await store.find_by_management_id("URC0000002")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>maintenance</html>"),
            httpx.Response(200, json=[]),
            httpx.Response(200, json={"totalCount": "0"}),
            httpx.Response(200, json={"records": [{"文字列__1行__14": {"value": "x"}}]}),
        ],
    )
    async def test_malformed_response(
        self,
        make_store: Callable[[Handler], KintoneRecordStore],
        response: httpx.Response,
    ) -> None:
        store = make_store(lambda request: response)

        with pytest.raises(UpstreamError):
            await store.find_by_management_id("URC0000002")

    @pytest.mark.asyncio
    async def test_malformed_date(
        self,
        make_store: Callable[[Handler], KintoneRecordStore],
    ) -> None:
        raw = kintone_record(**{"購入日": "10/01/2025"})
        store = make_store(lambda request: httpx.Response(200, json={"records": [raw]}))

        with pytest.raises(UpstreamError):
            await store.find_by_management_id("URC0000002")


# =============================================================================
# Update Tests
# =============================================================================


class TestKintoneUpdate:
    """Tests for update_by_internal_id."""

    @pytest.mark.asyncio
    async def test_update_body(
        self,
        make_store: Callable[[Handler], KintoneRecordStore],
        requests_seen: list[httpx.Request],
        registration_update: RegistrationUpdate,
    ) -> None:
        store = make_store(lambda request: httpx.Response(200, json={"revision": "4"}))
        record = WarrantyRecord(internal_id="7", management_id="URC0000002", revision="3")

        written = await store.update_by_internal_id(record, registration_update)

        assert written.id == "7"
        assert written.revision == "4"

        request = requests_seen[0]
        assert request.method == "PUT"
        assert request.url.path == "/k/v1/record.json"
        body = json.loads(request.content)
        assert body["app"] == "42"
        assert body["id"] == "7"
        assert body["revision"] == "3"
        assert body["record"] == {
            "name_1": {"value": "佐藤 花子"},
            "文字列__1行__4": {"value": "080-1234-5678"},
            "文字列__1行__5": {"value": "150-0001"},
            "address_1": {"value": "東京都渋谷区神宮前2-2-2"},
            "フリガナ": {"value": "サトウ ハナコ"},
        }

    @pytest.mark.asyncio
    async def test_revision_conflict(
        self,
        make_store: Callable[[Handler], KintoneRecordStore],
        registration_update: RegistrationUpdate,
    ) -> None:
        store = make_store(
            lambda request: httpx.Response(
                409,
                json={"code": "GAIA_CO02", "message": "revision mismatch"},
            )
        )
        record = WarrantyRecord(internal_id="7", management_id="URC0000002", revision="3")

        with pytest.raises(ConflictError):
            await store.update_by_internal_id(record, registration_update)

    @pytest.mark.asyncio
    async def test_server_error(
        self,
        make_store: Callable[[Handler], KintoneRecordStore],
        registration_update: RegistrationUpdate,
    ) -> None:
        store = make_store(lambda request: httpx.Response(500, text="Internal Server Error"))
        record = WarrantyRecord(internal_id="7", management_id="URC0000002", revision="3")

        with pytest.raises(UpstreamError):
            await store.update_by_internal_id(record, registration_update)

    @pytest.mark.asyncio
    async def test_close(
        self,
        make_store: Callable[[Handler], KintoneRecordStore],
    ) -> None:
        store = make_store(lambda request: httpx.Response(200, json={"records": []}))

        await store.close()

        assert store._client is None
