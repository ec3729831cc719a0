#!/usr/bin/env python3
"""In-memory stub of the NoSQL table server.

This module provides an aiohttp server implementing the table server's REST
surface over plain dictionaries, so data writers can be exercised end to end
without a real deployment. It supports:
- Table creation (Create / CreateIfNotExists) with the server's fail contract
- Row insert, insert-or-replace, read and delete
- Bulk insert-or-replace and clean-and-bulk-insert (table or partition scope)
- Partition deletion with repeated ``partitionKey`` parameters
- A log of received requests for assertions

Usage:
    async with TableServer(TableServerConfig(port=0)) as server:
        writer = DataWriter(Price, StaticSettings(server.base_url))
        ...
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from aiohttp import web

Rows = dict[str, dict[str, dict[str, Any]]]


@dataclass(frozen=True, slots=True)
class TableServerConfig:
    """Configuration for the stub table server.

    Attributes:
        host: Host address to bind to (default: 127.0.0.1)
        port: Port number to listen on; 0 picks a free port (default: 0)
    """

    host: str = "127.0.0.1"
    port: int = 0


@dataclass(frozen=True, slots=True)
class ReceivedRequest:
    """A request seen by the stub server."""

    method: str
    path: str
    query: list[tuple[str, str]]
    headers: Mapping[str, str]


def fail(reason: str, message: str) -> web.Response:
    return web.json_response({"reason": reason, "message": message}, status=400)


@dataclass
class TableServer:
    """Async HTTP stub of the table server.

    Example:
        ```python
        async with TableServer() as server:
            server.tables["prices"] = {}
            print(server.base_url)
        ```
    """

    config: TableServerConfig = field(default_factory=TableServerConfig)
    tables: dict[str, Rows] = field(default_factory=dict, init=False)
    requests: list[ReceivedRequest] = field(default_factory=list, init=False)
    _runner: web.AppRunner | None = field(default=None, init=False)
    _site: web.TCPSite | None = field(default=None, init=False)
    _bound_port: int | None = field(default=None, init=False)

    @property
    def base_url(self) -> str:
        port = self._bound_port or self.config.port
        return f"http://{self.config.host}:{port}"

    @web.middleware
    async def _record(self, request: web.Request, handler: Any) -> web.StreamResponse:
        self.requests.append(
            ReceivedRequest(
                method=request.method,
                path=request.path,
                query=list(request.query.items()),
                headers=request.headers.copy(),
            )
        )
        return await handler(request)

    def _table(self, request: web.Request) -> Rows | None:
        return self.tables.get(request.query.get("tableName", ""))

    async def _read_entities(self, request: web.Request) -> list[dict[str, Any]] | web.Response:
        try:
            payload = json.loads(await request.text())
        except ValueError as exc:
            return fail("JsonParseFail", str(exc))
        entities = payload if isinstance(payload, list) else [payload]
        for entity in entities:
            if not isinstance(entity, dict):
                return fail("JsonParseFail", "entity must be a JSON object")
            for required in ("PartitionKey", "RowKey"):
                if not isinstance(entity.get(required), str):
                    return fail("RequieredEntityFieldIsMissing", f"{required} is missing")
        return entities

    @staticmethod
    def _stamp(entity: dict[str, Any]) -> dict[str, Any]:
        stored = dict(entity)
        stored["TimeStamp"] = int(datetime.now(UTC).timestamp() * 1_000_000)
        return stored

    def _put(self, rows: Rows, entity: dict[str, Any]) -> None:
        rows.setdefault(entity["PartitionKey"], {})[entity["RowKey"]] = self._stamp(entity)

    async def handle_create_table(self, request: web.Request) -> web.Response:
        name = request.query.get("tableName")
        if not name:
            return fail("TableNotFound", "tableName is required")
        if name in self.tables:
            if request.match_info["action"] == "CreateIfNotExists":
                return web.Response(status=200)
            return fail("TableAlreadyExists", f"Table {name} already exists")
        self.tables[name] = {}
        return web.Response(status=200)

    async def handle_row_write(self, request: web.Request) -> web.Response:
        rows = self._table(request)
        if rows is None:
            return fail("TableNotFound", "Table not found")
        entities = await self._read_entities(request)
        if isinstance(entities, web.Response):
            return entities
        entity = entities[0]
        if request.match_info["action"] == "Insert":
            if entity["RowKey"] in rows.get(entity["PartitionKey"], {}):
                return fail("RecordAlreadyExists", "Record already exists")
        self._put(rows, entity)
        return web.Response(status=200)

    async def handle_bulk_insert_or_replace(self, request: web.Request) -> web.Response:
        rows = self._table(request)
        if rows is None:
            return fail("TableNotFound", "Table not found")
        entities = await self._read_entities(request)
        if isinstance(entities, web.Response):
            return entities
        for entity in entities:
            self._put(rows, entity)
        return web.Response(status=200)

    async def handle_clean_and_bulk_insert(self, request: web.Request) -> web.Response:
        rows = self._table(request)
        if rows is None:
            return fail("TableNotFound", "Table not found")
        entities = await self._read_entities(request)
        if isinstance(entities, web.Response):
            return entities
        partition_key = request.query.get("partitionKey")
        if partition_key is None:
            rows.clear()
        else:
            rows.pop(partition_key, None)
        for entity in entities:
            self._put(rows, entity)
        return web.Response(status=200)

    async def handle_get_rows(self, request: web.Request) -> web.Response:
        rows = self._table(request)
        if rows is None:
            return fail("TableNotFound", "Table not found")
        partition_key = request.query.get("partitionKey")
        row_key = request.query.get("rowKey")

        if partition_key is not None and row_key is not None:
            entity = rows.get(partition_key, {}).get(row_key)
            if entity is None:
                return web.Response(status=404)
            return web.json_response(entity)

        if partition_key is not None:
            return web.json_response(list(rows.get(partition_key, {}).values()))

        if row_key is not None:
            return web.json_response(
                [partition[row_key] for partition in rows.values() if row_key in partition]
            )

        return web.json_response(
            [entity for partition in rows.values() for entity in partition.values()]
        )

    async def handle_delete_row(self, request: web.Request) -> web.Response:
        rows = self._table(request)
        if rows is None:
            return fail("TableNotFound", "Table not found")
        partition = rows.get(request.query.get("partitionKey", ""), {})
        entity = partition.pop(request.query.get("rowKey", ""), None)
        if entity is None:
            return web.Response(status=404)
        return web.json_response(entity)

    async def handle_delete_partitions(self, request: web.Request) -> web.Response:
        rows = self._table(request)
        if rows is None:
            return fail("TableNotFound", "Table not found")
        removed = [rows.pop(key, None) for key in request.query.getall("partitionKey", [])]
        if not any(partition is not None for partition in removed):
            return web.Response(status=404)
        return web.Response(status=200)

    def _create_app(self) -> web.Application:
        app = web.Application(middlewares=[self._record])

        app.router.add_post("/Tables/{action:Create|CreateIfNotExists}", self.handle_create_table)
        app.router.add_post("/Row/{action:Insert|InsertOrReplace}", self.handle_row_write)
        app.router.add_post("/Bulk/InsertOrReplace", self.handle_bulk_insert_or_replace)
        app.router.add_post("/Bulk/CleanAndBulkInsert", self.handle_clean_and_bulk_insert)
        app.router.add_get("/Row", self.handle_get_rows)
        app.router.add_delete("/Row", self.handle_delete_row)
        app.router.add_delete("/Rows", self.handle_delete_partitions)

        return app

    async def start(self) -> None:
        """Start the stub server.

        Raises:
            RuntimeError: If the server is already running.
        """
        if self._runner is not None:
            raise RuntimeError("Server is already running")

        self._runner = web.AppRunner(self._create_app())
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await self._site.start()

        self._bound_port = self.config.port
        if self._runner.addresses:
            address = self._runner.addresses[0]
            if isinstance(address, tuple) and len(address) >= 2:
                self._bound_port = address[1]

    async def stop(self) -> None:
        """Stop the stub server.

        Raises:
            RuntimeError: If the server is not running.
        """
        if self._runner is None:
            raise RuntimeError("Server is not running")

        await self._runner.cleanup()
        self._runner = None
        self._site = None
        self._bound_port = None

    async def __aenter__(self) -> TableServer:
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()
