"""Unit tests for WriterRequest composition and dispatch."""

from __future__ import annotations

import httpx
import pytest

from nosql_writer.errors import GenericWriterError, TransportError
from nosql_writer.request import WriterRequest, send
from nosql_writer.sync_period import SyncPeriod


class TestWriterRequestComposition:
    """Tests for building request descriptions."""

    def test_path_segments_in_order(self) -> None:
        """Controller then action are appended to the base URL."""
        request = (
            WriterRequest.post("http://nosql:5123/")
            .append_path_segment("Bulk")
            .append_path_segment("InsertOrReplace")
        )
        assert request.endpoint == "http://nosql:5123/Bulk/InsertOrReplace"

    def test_query_params_in_call_order(self) -> None:
        """Query parameters render in the order they were added."""
        request = (
            WriterRequest.post("http://nosql:5123")
            .append_path_segment("Row")
            .append_path_segment("Insert")
            .with_table_name("prices")
            .with_sync_period(SyncPeriod.IMMEDIATE)
        )
        assert request.url == "http://nosql:5123/Row/Insert?tableName=prices&syncPeriod=i"

    def test_repeated_params_kept(self) -> None:
        """Repeated keys are not merged."""
        request = (
            WriterRequest.delete("http://nosql:5123")
            .append_path_segment("Rows")
            .with_table_name("prices")
            .with_partition_key("a")
            .with_partition_key("b")
        )
        assert [value for key, value in request.params if key == "partitionKey"] == ["a", "b"]
        assert request.query_string == "tableName=prices&partitionKey=a&partitionKey=b"

    def test_builder_is_immutable(self) -> None:
        """Builder methods leave the original request untouched."""
        base = WriterRequest.get("http://nosql:5123")
        derived = base.with_row_key("r1").with_header("x", "y")
        assert base.params == ()
        assert base.headers == ()
        assert derived.params == (("rowKey", "r1"),)
        assert derived.headers == (("x", "y"),)

    def test_query_values_are_escaped(self) -> None:
        """Keys with reserved characters are percent-encoded."""
        request = WriterRequest.get("http://nosql:5123").with_partition_key("a&b c")
        assert request.url == "http://nosql:5123?partitionKey=a%26b+c"

    def test_json_body(self) -> None:
        """JSON bodies are UTF-8 encoded and typed."""
        request = WriterRequest.post("http://nosql:5123").with_json_body([{"k": "é"}])
        assert request.body == '[{"k": "é"}]'.encode()
        assert ("Content-Type", "application/json") in request.headers


class TestSend:
    """Tests for dispatching over httpx."""

    @pytest.mark.asyncio
    async def test_send_passes_request_through(self) -> None:
        """Method, path, params, headers and body reach the transport."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200)

        request = (
            WriterRequest.post("http://nosql:5123")
            .append_path_segment("Row")
            .with_table_name("prices")
            .with_header("updateRowsLastReadTime", "true")
            .with_json_body({"a": 1})
        )
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            response = await send(client, request)

        assert response.status_code == 200
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/Row"
        assert seen[0].url.params.multi_items() == [("tableName", "prices")]
        assert seen[0].headers["updateRowsLastReadTime"] == "true"
        assert seen[0].content == b'{"a": 1}'

    @pytest.mark.asyncio
    async def test_transport_failure_raised_as_transport_error(self) -> None:
        """httpx transport errors become TransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        request = WriterRequest.get("http://nosql:5123").append_path_segment("Row")
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(TransportError, match="connection refused") as exc_info:
                await send(client, request)

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_malformed_url_raised_as_writer_error(self) -> None:
        """A base URL httpx cannot parse becomes GenericWriterError."""
        request = WriterRequest.get("http://[::1").append_path_segment("Row")
        transport = httpx.MockTransport(lambda request: httpx.Response(200))
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(GenericWriterError, match="Invalid URL") as exc_info:
                await send(client, request)

        assert isinstance(exc_info.value.__cause__, httpx.InvalidURL)
