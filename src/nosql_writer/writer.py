"""Data writer bound to one entity type.

This module implements :class:`DataWriter`, the public entry point of the
package. It resolves the server URL from a settings provider on every call,
builds the request, sends it over a shared ``httpx.AsyncClient`` and runs the
response through the :class:`~nosql_writer.translator.ErrorTranslator`.

Features:
- Row, bulk, read and delete operations of the table server's REST surface
- 404 on read/delete paths returned as ``None`` instead of an error
- Optional read-statistics headers on point and partition reads
- Optional detached table provisioning at construction time
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any, Generic, Self, TypeVar

import httpx

from nosql_writer.entity import NoSqlEntity
from nosql_writer.errors import DecodeError, WriterError
from nosql_writer.models import CreateTableParams, WriterConfig
from nosql_writer.observability.sink import LoggingSink, ObservabilitySink
from nosql_writer.read_statistics import ReadStatisticsUpdate
from nosql_writer.request import (
    BULK_CONTROLLER,
    ROW_CONTROLLER,
    ROWS_CONTROLLER,
    TABLES_CONTROLLER,
    WriterRequest,
)
from nosql_writer.settings import SettingsProvider
from nosql_writer.tables import TableManager
from nosql_writer.translator import ErrorTranslator, decode_text, is_success

logger = logging.getLogger(__name__)

# Strong references to detached provisioning tasks until they finish.
_BACKGROUND_TASKS: set[asyncio.Task[None]] = set()

T = TypeVar("T", bound=NoSqlEntity)


class DataWriter(Generic[T]):
    """Reads and writes rows of one entity type on the table server.

    The writer keeps no per-call state, so one instance may serve concurrent
    calls. Call :meth:`aclose` (or use ``async with``) to release the shared
    connection pool.

    Args:
        entity_type: Row type; supplies the table name and JSON decoding.
        settings: Resolves the server URL for each call.
        config: Sync period, provisioning and connection settings.
        sink: Receives failure events (default: :class:`LoggingSink`).
        transport: Optional httpx transport, e.g. ``httpx.MockTransport``.

    Example:
        ```python
        async with DataWriter(Price, StaticSettings("http://nosql:5123")) as writer:
            price = Price(partition_key="EUR", row_key="USD", bid=1.1, ask=1.2)
            await writer.insert_or_replace(price)
            stored = await writer.get_entity("EUR", "USD")
        ```
    """

    def __init__(
        self,
        entity_type: type[T],
        settings: SettingsProvider,
        config: WriterConfig | None = None,
        sink: ObservabilitySink | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._entity_type = entity_type
        self._table_name = entity_type.table_name()
        self._settings = settings
        self._config = config or WriterConfig()
        self._translator = ErrorTranslator(sink or LoggingSink())
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._provisioning: asyncio.Task[None] | threading.Thread | None = None

        if self._config.auto_create_table:
            self._provisioning = self._spawn_provisioning()

    @property
    def table_name(self) -> str:
        """Name of the table this writer targets."""
        return self._table_name

    @property
    def config(self) -> WriterConfig:
        """Configuration the writer was built with."""
        return self._config

    async def __aenter__(self) -> Self:
        """Enter async context manager.

        Returns:
            Self for context manager protocol.
        """
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager and close the shared client.

        Args:
            exc_type: Exception type if an error occurred.
            exc_val: Exception value if an error occurred.
            exc_tb: Exception traceback if an error occurred.
        """
        await self.aclose()

    async def aclose(self) -> None:
        """Close the shared HTTP client, if one was opened."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _new_client(self) -> httpx.AsyncClient:
        """Build a client from the connection settings.

        Returns:
            A new client using the injected transport, if any.
        """
        connection = self._config.connection
        limits = httpx.Limits(
            max_keepalive_connections=connection.max_keepalive_connections,
            max_connections=connection.max_connections,
            keepalive_expiry=connection.keepalive_expiry,
        )
        timeout = httpx.Timeout(connection.timeout)
        if self._transport is not None:
            return httpx.AsyncClient(transport=self._transport, limits=limits, timeout=timeout)
        return httpx.AsyncClient(limits=limits, timeout=timeout, http2=connection.http2)

    def _get_client(self) -> httpx.AsyncClient:
        """Return the shared client, creating it on first use."""
        if self._client is None:
            self._client = self._new_client()
        return self._client

    async def _request(self, method: str) -> WriterRequest:
        """Start a request against the URL the settings currently resolve to."""
        return WriterRequest(method, await self._settings.get_url())

    async def _dispatch(self, request: WriterRequest) -> httpx.Response:
        return await self._translator.dispatch(self._get_client(), request)

    # Table lifecycle

    def _spawn_provisioning(self) -> asyncio.Task[None] | threading.Thread:
        """Start create-if-not-exists without waiting for it."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            thread = threading.Thread(
                target=asyncio.run,
                args=(self._provision(),),
                name=f"nosql-writer-provision-{self._table_name}",
                daemon=True,
            )
            thread.start()
            return thread

        task = loop.create_task(self._provision())
        _BACKGROUND_TASKS.add(task)
        task.add_done_callback(_BACKGROUND_TASKS.discard)
        return task

    async def _provision(self) -> None:
        """Create the table if missing; outcomes go to the sink and the log only."""
        request = (
            WriterRequest.post("")
            .append_path_segment(TABLES_CONTROLLER)
            .append_path_segment("CreateIfNotExists")
            .with_table_name(self._table_name)
        )
        try:
            base_url = await self._settings.get_url()
        except Exception as exc:
            error = exc if isinstance(exc, WriterError) else WriterError(str(exc))
            await self._translator.report(error, request)
            self._log_provisioning("nosql_writer_provisioning_failed", error)
            return

        try:
            async with self._new_client() as client:
                await self._table_manager(client).create_if_not_exists(
                    base_url, self._config.table_params
                )
        except WriterError as exc:
            # Already reported to the sink by the translator.
            self._log_provisioning("nosql_writer_provisioning_failed", exc)
        except Exception as exc:
            error = WriterError(f"{type(exc).__name__}: {exc}")
            await self._translator.report(error, replace(request, base_url=base_url))
            self._log_provisioning("nosql_writer_provisioning_failed", error)
        else:
            self._log_provisioning("nosql_writer_table_provisioned")

    def _log_provisioning(self, event: str, error: WriterError | None = None) -> None:
        entry: dict[str, Any] = {
            "event": event,
            "table": self._table_name,
            "timestamp": datetime.now(UTC).isoformat(),
        }
        if error is None:
            logger.info(json.dumps(entry))
            return
        entry["error_kind"] = error.kind
        entry["message"] = error.message
        logger.warning(json.dumps(entry))

    def _table_manager(self, client: httpx.AsyncClient | None = None) -> TableManager:
        return TableManager(
            client or self._get_client(),
            self._table_name,
            self._config.sync_period,
            self._translator,
        )

    async def create_table(self, params: CreateTableParams | None = None) -> None:
        """Create the writer's table.

        Args:
            params: Creation parameters (default: the writer's configured ones).

        Raises:
            TableAlreadyExistsError: If the table already exists.
            WriterError: For any other failure.
        """
        await self._table_manager().create(
            await self._settings.get_url(), params or self._config.table_params
        )

    async def create_table_if_not_exists(self, params: CreateTableParams | None = None) -> None:
        """Create the writer's table unless it already exists.

        Raises:
            WriterError: If the server rejects the request.
        """
        await self._table_manager().create_if_not_exists(
            await self._settings.get_url(), params or self._config.table_params
        )

    # Writes

    async def _write(self, controller: str, action: str, payload: Any) -> None:
        request = (
            (await self._request("POST"))
            .append_path_segment(controller)
            .append_path_segment(action)
            .with_table_name(self._table_name)
            .with_sync_period(self._config.sync_period)
            .with_json_body(payload)
        )
        response = await self._dispatch(request)
        if is_success(response.status_code):
            return
        await self._translator.fail_with_body(response, request)

    async def insert(self, entity: T) -> None:
        """Insert a row that must not exist yet.

        Raises:
            GenericWriterError: With the server's response body as message.
            TransportError: If the server could not be reached.
        """
        await self._write(ROW_CONTROLLER, "Insert", entity.to_json())

    async def insert_or_replace(self, entity: T) -> None:
        """Insert a row, replacing any row with the same keys."""
        await self._write(ROW_CONTROLLER, "InsertOrReplace", entity.to_json())

    async def bulk_insert_or_replace(self, entities: Sequence[T]) -> None:
        """Insert or replace many rows in one request. An empty list is sent as-is."""
        await self._write(
            BULK_CONTROLLER, "InsertOrReplace", [entity.to_json() for entity in entities]
        )

    async def _clean_and_bulk_insert(
        self, entities: Sequence[T], partition_key: str | None
    ) -> None:
        request = (
            (await self._request("POST"))
            .append_path_segment(BULK_CONTROLLER)
            .append_path_segment("CleanAndBulkInsert")
            .with_table_name(self._table_name)
            .with_sync_period(self._config.sync_period)
        )
        if partition_key is not None:
            request = request.with_partition_key(partition_key)
        request = request.with_json_body([entity.to_json() for entity in entities])

        response = await self._dispatch(request)
        await self._translator.check(response, request)

    async def clean_table_and_bulk_insert(self, entities: Sequence[T]) -> None:
        """Replace the whole table content with ``entities``.

        Raises:
            WriterError: If the server rejects the replacement.
        """
        await self._clean_and_bulk_insert(entities, None)

    async def clean_partition_and_bulk_insert(
        self, partition_key: str, entities: Sequence[T]
    ) -> None:
        """Replace one partition's content with ``entities``.

        Raises:
            WriterError: If the server rejects the replacement.
        """
        await self._clean_and_bulk_insert(entities, partition_key)

    # Reads

    def _decode_json(self, body: bytes) -> Any:
        try:
            return json.loads(decode_text(body))
        except ValueError as exc:
            raise DecodeError(f"Failed to deserialize entity: {exc}") from exc

    def _decode_entity(self, data: Any) -> T:
        try:
            return self._entity_type.from_json(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise DecodeError(f"Failed to deserialize entity: {exc!r}") from exc

    async def _fetch(self, request: WriterRequest) -> Any | None:
        """Send a read/delete request; None on 404, decoded JSON on success."""
        response = await self._dispatch(request)
        if response.status_code == 404:
            return None
        await self._translator.check(response, request)
        if not response.content:
            return None
        try:
            return self._decode_json(response.content)
        except DecodeError as exc:
            await self._translator.raise_decode_error(exc, request, response.status_code)

    async def _fetch_entity(self, request: WriterRequest) -> T | None:
        data = await self._fetch(request)
        if data is None:
            return None
        try:
            return self._decode_entity(data)
        except DecodeError as exc:
            await self._translator.raise_decode_error(exc, request, 200)

    async def _fetch_entities(self, request: WriterRequest) -> list[T] | None:
        data = await self._fetch(request)
        if data is None:
            return None
        try:
            if not isinstance(data, list):
                raise DecodeError(f"Expected a JSON array, got {type(data).__name__}")
            return [self._decode_entity(item) for item in data]
        except DecodeError as exc:
            await self._translator.raise_decode_error(exc, request, 200)

    async def _read_request(self) -> WriterRequest:
        return (
            (await self._request("GET"))
            .append_path_segment(ROW_CONTROLLER)
            .with_table_name(self._table_name)
        )

    async def get_entity(
        self,
        partition_key: str,
        row_key: str,
        read_stats: ReadStatisticsUpdate | None = None,
    ) -> T | None:
        """Read one row.

        Args:
            partition_key: Partition of the row.
            row_key: Key of the row.
            read_stats: Read bookkeeping the server should apply.

        Returns:
            The row, or None if the server answered 404.

        Raises:
            DecodeError: If the row could not be decoded.
            WriterError: For any other failure.
        """
        request = (
            (await self._read_request()).with_partition_key(partition_key).with_row_key(row_key)
        )
        if read_stats is not None:
            request = read_stats.apply(request)
        return await self._fetch_entity(request)

    async def get_by_partition_key(
        self,
        partition_key: str,
        read_stats: ReadStatisticsUpdate | None = None,
    ) -> list[T] | None:
        """Read every row of a partition, or None if the server answered 404."""
        request = (await self._read_request()).with_partition_key(partition_key)
        if read_stats is not None:
            request = read_stats.apply(request)
        return await self._fetch_entities(request)

    async def get_by_row_key(self, row_key: str) -> list[T] | None:
        """Read the rows sharing ``row_key`` across all partitions."""
        request = (await self._read_request()).with_row_key(row_key)
        return await self._fetch_entities(request)

    async def get_all(self) -> list[T] | None:
        """Read the whole table, or None if the server answered 404."""
        return await self._fetch_entities(await self._read_request())

    # Deletes

    async def delete_row(self, partition_key: str, row_key: str) -> T | None:
        """Delete one row.

        Returns:
            The row as it was before deletion, or None if it did not exist.

        Raises:
            WriterError: If the server rejects the deletion.
        """
        request = (
            (await self._request("DELETE"))
            .append_path_segment(ROW_CONTROLLER)
            .with_table_name(self._table_name)
            .with_partition_key(partition_key)
            .with_row_key(row_key)
        )
        return await self._fetch_entity(request)

    async def delete_partitions(self, partition_keys: Sequence[str]) -> None:
        """Delete whole partitions.

        Missing partitions are not an error. An empty ``partition_keys`` sends
        nothing.

        Raises:
            WriterError: If the server rejects the deletion.
        """
        if not partition_keys:
            return

        request = (
            (await self._request("DELETE"))
            .append_path_segment(ROWS_CONTROLLER)
            .with_table_name(self._table_name)
        )
        for partition_key in partition_keys:
            request = request.with_partition_key(partition_key)

        response = await self._dispatch(request)
        if response.status_code == 404:
            return
        await self._translator.check(response, request)
