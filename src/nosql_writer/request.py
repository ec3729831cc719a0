"""Immutable request descriptions and their dispatch over httpx.

A :class:`WriterRequest` accumulates path segments, query parameters, headers
and a body without touching the network. Nothing is sent until :func:`send`
hands it to an ``httpx.AsyncClient``.

Example:
    ```python
    request = (
        WriterRequest.post("http://localhost:5123")
        .append_path_segment("Row")
        .append_path_segment("Insert")
        .with_table_name("prices")
        .with_sync_period(SyncPeriod.SEC5)
    )
    request.url  # 'http://localhost:5123/Row/Insert?tableName=prices&syncPeriod=5'
    ```
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from typing import Any, Self
from urllib.parse import quote, urlencode

import httpx

from nosql_writer.errors import GenericWriterError, TransportError
from nosql_writer.sync_period import SyncPeriod, encode

ROW_CONTROLLER = "Row"
ROWS_CONTROLLER = "Rows"
BULK_CONTROLLER = "Bulk"
TABLES_CONTROLLER = "Tables"


@dataclass(frozen=True, slots=True)
class WriterRequest:
    """Description of one HTTP call against the table server.

    Attributes:
        method: HTTP method.
        base_url: Endpoint resolved from the settings provider.
        path: Path segments appended to ``base_url`` in order.
        params: Query pairs in the order they were added. Keys may repeat.
        headers: Header pairs in the order they were added.
        body: Request payload, if any.
    """

    method: str
    base_url: str
    path: tuple[str, ...] = ()
    params: tuple[tuple[str, str], ...] = ()
    headers: tuple[tuple[str, str], ...] = ()
    body: bytes | None = None

    @classmethod
    def get(cls, base_url: str) -> Self:
        return cls("GET", base_url)

    @classmethod
    def post(cls, base_url: str) -> Self:
        return cls("POST", base_url)

    @classmethod
    def delete(cls, base_url: str) -> Self:
        return cls("DELETE", base_url)

    def append_path_segment(self, segment: str) -> Self:
        return replace(self, path=(*self.path, segment))

    def with_query_param(self, name: str, value: str) -> Self:
        return replace(self, params=(*self.params, (name, value)))

    def with_header(self, name: str, value: str) -> Self:
        return replace(self, headers=(*self.headers, (name, value)))

    def with_table_name(self, table_name: str) -> Self:
        return self.with_query_param("tableName", table_name)

    def with_sync_period(self, sync_period: SyncPeriod) -> Self:
        return self.with_query_param("syncPeriod", encode(sync_period))

    def with_partition_key(self, partition_key: str) -> Self:
        return self.with_query_param("partitionKey", partition_key)

    def with_row_key(self, row_key: str) -> Self:
        return self.with_query_param("rowKey", row_key)

    def with_json_body(self, payload: Any) -> Self:
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        return replace(self, body=body).with_header("Content-Type", "application/json")

    @property
    def endpoint(self) -> str:
        """Base URL plus path, without the query string."""
        base = self.base_url.rstrip("/")
        if not self.path:
            return base
        return base + "/" + "/".join(quote(segment, safe="") for segment in self.path)

    @property
    def query_string(self) -> str:
        return urlencode(self.params)

    @property
    def url(self) -> str:
        """Full URL including the query string."""
        if not self.params:
            return self.endpoint
        return f"{self.endpoint}?{self.query_string}"


async def send(client: httpx.AsyncClient, request: WriterRequest) -> httpx.Response:
    """Dispatch ``request`` and return the fully read response.

    Raises:
        TransportError: If no response was received.
        GenericWriterError: If the resolved URL is malformed.
    """
    try:
        return await client.request(
            request.method,
            request.endpoint,
            params=list(request.params),
            headers=list(request.headers),
            content=request.body,
        )
    except httpx.TransportError as exc:
        raise TransportError(f"{request.method} {request.url} failed: {exc!r}") from exc
    except httpx.InvalidURL as exc:
        raise GenericWriterError(f"Invalid URL {request.url}: {exc}") from exc
