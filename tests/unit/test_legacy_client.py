"""
Unit tests for the legacy direct HTTP client.

Tests cover:
- Request shapes (method, path, content type, body) of each operation
- Status code handling and error wrapping
- Unsupported operations
- Health check wiring, retry opt-out and request signing
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from conftest import ES_URL, RecordingTransport
from esclient.client.base import (
    AddDocumentOptions,
    BulkIndexerAction,
    Count,
    Header,
    QueryParams,
    Search,
)
from esclient.client.legacy import LegacyClient
from esclient.errors.codes import ErrorCode
from esclient.errors.exceptions import ClientError
from esclient.health.checker import MSG_HEALTHY
from esclient.health.probes import PATH_HEALTH
from esclient.health.state import HealthStatus
from esclient.transport.http import HTTPClient


def make_client(transport: RecordingTransport, max_retries: int = 0, **kwargs) -> LegacyClient:
    http_client = HTTPClient(
        max_retries=max_retries,
        client=httpx.AsyncClient(transport=httpx.MockTransport(transport)),
    )
    return LegacyClient(ES_URL + "/", http_client=http_client, **kwargs)


def ok(body=None, status_code=200):
    return httpx.Response(status_code, json=body if body is not None else {"acknowledged": True})


class TestConstruction:
    """Tests for LegacyClient construction."""

    def test_trailing_slash_removed(self):
        client = make_client(RecordingTransport())

        assert client.url == ES_URL

    def test_health_path_registered_as_no_retry(self):
        http_client = HTTPClient(max_retries=3, paths_with_no_retries=["/_nodes"])

        LegacyClient(ES_URL, http_client=http_client)

        assert http_client.get_paths_with_no_retries() == ["/_nodes", PATH_HEALTH]

    def test_health_path_registered_once(self):
        http_client = HTTPClient()

        LegacyClient(ES_URL, http_client=http_client)
        LegacyClient(ES_URL, http_client=http_client)

        assert http_client.get_paths_with_no_retries() == [PATH_HEALTH]

    def test_default_http_client_uses_max_retries(self):
        client = LegacyClient(ES_URL, max_retries=5)

        assert client.http_client.get_max_retries() == 5


class TestIndexOperations:
    """Tests for index management."""

    @pytest.mark.asyncio
    async def test_get_indices(self):
        transport = RecordingTransport({
            ("GET", "/orders,customers-*"): ok({"orders": {}, "customers-2024": {}}),
        })
        client = make_client(transport)

        indices = await client.get_indices(["orders", "customers-*"])

        assert set(indices) == {"orders", "customers-2024"}

    @pytest.mark.asyncio
    async def test_create_index_sends_settings(self):
        transport = RecordingTransport({("PUT", "/orders"): ok()})
        client = make_client(transport)
        index_settings = {"settings": {"number_of_shards": 1}}

        await client.create_index("orders", index_settings)

        request = transport.requests[0]
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == index_settings

    @pytest.mark.asyncio
    async def test_create_index_without_settings_has_no_body(self):
        transport = RecordingTransport({("PUT", "/orders"): ok()})
        client = make_client(transport)

        await client.create_index("orders")

        assert transport.requests[0].content == b""
        assert "Content-Type" not in transport.requests[0].headers

    @pytest.mark.asyncio
    async def test_create_index_requires_200(self):
        transport = RecordingTransport({("PUT", "/orders"): ok(status_code=202)})
        client = make_client(transport)

        with pytest.raises(ClientError) as exc_info:
            await client.create_index("orders")

        assert exc_info.value.message == "failed to create index 'orders'"
        assert exc_info.value.status_code == 202

    @pytest.mark.asyncio
    async def test_create_existing_index_fails(self):
        transport = RecordingTransport({
            ("PUT", "/orders"): httpx.Response(400, json={"error": {"type": "resource_already_exists_exception"}}),
        })
        client = make_client(transport)

        with pytest.raises(ClientError) as exc_info:
            await client.create_index("orders")

        assert exc_info.value.error_code == ErrorCode.UNEXPECTED_STATUS_CODE
        assert exc_info.value.status_code == 400
        assert "resource_already_exists_exception" in exc_info.value.details["body"]

    @pytest.mark.asyncio
    async def test_delete_indices_deletes_each(self):
        transport = RecordingTransport({
            ("DELETE", "/a"): ok(),
            ("DELETE", "/b"): ok(),
        })
        client = make_client(transport)

        await client.delete_indices(["a", "b"])

        assert [(r.method, r.url.path) for r in transport.requests] == [
            ("DELETE", "/a"),
            ("DELETE", "/b"),
        ]

    @pytest.mark.asyncio
    async def test_delete_missing_index_fails(self):
        client = make_client(RecordingTransport())

        with pytest.raises(ClientError) as exc_info:
            await client.delete_index("missing")

        assert exc_info.value.status_code == 404


class TestDocumentOperations:
    """Tests for document writes."""

    @pytest.mark.asyncio
    async def test_add_document(self):
        transport = RecordingTransport({
            ("PUT", "/orders/_doc/42"): ok({"result": "created"}, status_code=201),
        })
        client = make_client(transport)

        await client.add_document("orders", "42", {"total": 10})

        assert json.loads(transport.requests[0].content) == {"total": 10}

    @pytest.mark.asyncio
    async def test_add_document_with_type(self):
        transport = RecordingTransport({
            ("PUT", "/orders/order/42"): ok({"result": "created"}, status_code=201),
        })
        client = make_client(transport)

        await client.add_document(
            "orders", "42", {"total": 10}, AddDocumentOptions(document_type="order")
        )

        assert transport.calls("PUT", "/orders/order/42") == 1

    @pytest.mark.asyncio
    async def test_overwrite_without_upsert_fails(self):
        transport = RecordingTransport({
            ("PUT", "/orders/_doc/42"): ok({"result": "updated"}, status_code=200),
        })
        client = make_client(transport)

        with pytest.raises(ClientError) as exc_info:
            await client.add_document("orders", "42", {"total": 10})

        assert exc_info.value.message == "unable to add document to elasticsearch"
        assert exc_info.value.status_code == 200

    @pytest.mark.asyncio
    async def test_overwrite_with_upsert(self):
        transport = RecordingTransport({
            ("PUT", "/orders/_doc/42"): ok({"result": "updated"}, status_code=200),
        })
        client = make_client(transport)

        await client.add_document("orders", "42", {"total": 10}, AddDocumentOptions(upsert=True))

    @pytest.mark.asyncio
    async def test_delete_document(self):
        transport = RecordingTransport({("DELETE", "/orders/_doc/42"): ok({"result": "deleted"})})
        client = make_client(transport)

        await client.delete_document("orders", "42")

        assert transport.calls("DELETE", "/orders/_doc/42") == 1

    @pytest.mark.asyncio
    async def test_bulk_update_uses_given_url(self):
        transport = RecordingTransport({("POST", "/orders/_bulk"): ok({"errors": False, "items": []})})
        client = make_client(transport)
        payload = b'{"index":{"_id":"1"}}\n{"total":10}\n'

        result = await client.bulk_update("orders", "http://other:9200/", payload)

        request = transport.requests[0]
        assert str(request.url) == "http://other:9200/orders/_bulk"
        assert request.headers["Content-Type"] == "application/x-ndjson"
        assert request.content == payload
        assert result == {"errors": False, "items": []}

    @pytest.mark.asyncio
    async def test_bulk_update_defaults_to_client_url(self):
        transport = RecordingTransport({("POST", "/orders/_bulk"): ok({"errors": False})})
        client = make_client(transport)

        await client.bulk_update("orders", "", b"{}\n")

        assert str(transport.requests[0].url) == ES_URL + "/orders/_bulk"


class TestSearchOperations:
    """Tests for search and count."""

    @pytest.mark.asyncio
    async def test_search(self):
        body = {"hits": {"total": {"value": 1}, "hits": [{"_id": "42"}]}}
        transport = RecordingTransport({("POST", "/orders/_search"): ok(body)})
        client = make_client(transport)
        query = {"query": {"match": {"status": "open"}}}

        result = await client.search(Search(Header("orders"), query))

        assert result == body
        assert json.loads(transport.requests[0].content) == query

    @pytest.mark.asyncio
    async def test_multi_search(self):
        transport = RecordingTransport({("POST", "/_msearch"): ok({"responses": [{}, {}]})})
        client = make_client(transport)
        searches = [
            Search(Header("orders"), {"query": {"match_all": {}}}),
            Search(Header("customers"), {"size": 0}),
        ]

        result = await client.multi_search(searches, QueryParams(enable_total_hits_counter=True))

        request = transport.requests[0]
        assert request.headers["Content-Type"] == "application/x-ndjson"
        assert request.url.params["rest_total_hits_as_int"] == "true"
        assert request.content == (
            b'{"index":"orders"}\n{"query":{"match_all":{}}}\n'
            b'{"index":"customers"}\n{"size":0}\n'
        )
        assert len(result["responses"]) == 2

    @pytest.mark.asyncio
    async def test_multi_search_without_params(self):
        transport = RecordingTransport({("POST", "/_msearch"): ok({"responses": []})})
        client = make_client(transport)

        await client.multi_search([Search(Header("orders"), {})])

        assert "rest_total_hits_as_int" not in transport.requests[0].url.params

    @pytest.mark.asyncio
    async def test_count(self):
        transport = RecordingTransport({("POST", "/_count"): ok({"count": 7})})
        client = make_client(transport)

        result = await client.count(Count({"query": {"term": {"status": "open"}}}))

        assert result["count"] == 7

    @pytest.mark.asyncio
    async def test_count_indices(self):
        transport = RecordingTransport({("GET", "/a,b/_count"): ok({"count": 3})})
        client = make_client(transport)

        result = await client.count_indices(["a", "b"])

        assert result == {"count": 3}

    @pytest.mark.asyncio
    async def test_unparseable_response(self):
        transport = RecordingTransport({
            ("POST", "/orders/_search"): httpx.Response(200, text="not json"),
        })
        client = make_client(transport)

        with pytest.raises(ClientError) as exc_info:
            await client.search(Search(Header("orders"), {}))

        assert exc_info.value.error_code == ErrorCode.PARSING_ERROR

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self):
        transport = RecordingTransport({
            ("POST", "/_count"): httpx.ConnectError("connection refused"),
        })
        client = make_client(transport)

        with pytest.raises(ClientError) as exc_info:
            await client.count(Count({}))

        assert exc_info.value.error_code == ErrorCode.TRANSPORT_ERROR


class TestUnsupportedOperations:
    """Operations that require the SDK client."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("call", [
        lambda c: c.get_alias(),
        lambda c: c.update_aliases("current", ["old"], ["new"]),
        lambda c: c.explain("42", Search(Header("orders"), {})),
        lambda c: c.delete_document_by_query(Search(Header("orders"), {})),
        lambda c: c.new_bulk_indexer(),
        lambda c: c.bulk_index_add(BulkIndexerAction.INDEX, "orders", "1", {}),
        lambda c: c.bulk_index_close(),
    ])
    async def test_raises_unsupported(self, call):
        transport = RecordingTransport()
        client = make_client(transport)

        with pytest.raises(ClientError) as exc_info:
            await call(client)

        assert exc_info.value.error_code == ErrorCode.UNSUPPORTED_OPERATION
        assert exc_info.value.status_code == 501
        assert transport.requests == []


class TestChecker:
    """Tests for the health check of the legacy client."""

    @pytest.mark.asyncio
    async def test_checker(self):
        transport = RecordingTransport({
            ("GET", PATH_HEALTH): httpx.Response(200, json={"status": "green"}),
            ("HEAD", "/orders"): httpx.Response(200),
        })
        client = make_client(transport, indexes=["orders"])

        state = await client.checker()

        assert state.status == HealthStatus.OK
        assert state.message == MSG_HEALTHY
        assert len(transport.requests) == 2

    @pytest.mark.asyncio
    async def test_health_check_is_not_retried(self):
        transport = RecordingTransport({("GET", PATH_HEALTH): httpx.Response(503)})
        client = make_client(transport, max_retries=3)

        with patch("esclient.resilience.retry.asyncio.sleep", new=AsyncMock()):
            state = await client.checker()

        assert state.status == HealthStatus.CRITICAL
        assert state.status_code == 503
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_other_calls_are_retried(self):
        transport = RecordingTransport({
            ("POST", "/_count"): [httpx.Response(503), ok({"count": 1})],
        })
        client = make_client(transport, max_retries=3)

        with patch("esclient.resilience.retry.asyncio.sleep", new=AsyncMock()):
            result = await client.count(Count({}))

        assert result == {"count": 1}
        assert len(transport.requests) == 2


class TestSigning:
    """Tests for request signing."""

    @pytest.mark.asyncio
    async def test_requests_are_signed(self):
        transport = RecordingTransport({("POST", "/_count"): ok({"count": 0})})
        signer = AsyncMock()
        signer.sign.side_effect = lambda request: request.headers.update(
            {"Authorization": "AWS4-HMAC-SHA256 test"}
        )
        client = make_client(transport, signer=signer)

        await client.count(Count({}))

        signer.sign.assert_awaited_once()
        assert transport.requests[0].headers["Authorization"] == "AWS4-HMAC-SHA256 test"

    @pytest.mark.asyncio
    async def test_health_probe_is_signed(self):
        transport = RecordingTransport({
            ("GET", PATH_HEALTH): httpx.Response(200, json={"status": "green"}),
        })
        signer = AsyncMock()
        client = make_client(transport, signer=signer)

        await client.checker()

        signer.sign.assert_awaited_once()


class TestClose:
    """Tests for releasing the HTTP client."""

    @pytest.mark.asyncio
    async def test_injected_http_client_is_not_closed(self):
        http_client = MagicMock(spec=HTTPClient)
        http_client.get_paths_with_no_retries.return_value = []
        http_client.aclose = AsyncMock()
        client = LegacyClient(ES_URL, http_client=http_client)

        await client.close()

        http_client.aclose.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_owned_http_client_is_closed(self):
        client = LegacyClient(ES_URL)
        client.http_client.aclose = AsyncMock()

        async with client:
            pass

        client.http_client.aclose.assert_awaited_once()
