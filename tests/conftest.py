"""Pytest configuration and fixtures for nosql-writer tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio

from nosql_writer.models import WriterConfig
from nosql_writer.settings import StaticSettings
from nosql_writer.writer import DataWriter
from stubs.support import BASE_URL, Price, RecordingSink
from stubs.table_server import TableServer, TableServerConfig


@pytest.fixture()
def sink() -> RecordingSink:
    """Provide a sink recording failure events."""
    return RecordingSink()


@pytest.fixture()
def sent() -> list[httpx.Request]:
    """Requests captured by the mock transport."""
    return []


@pytest.fixture()
def make_writer(
    sink: RecordingSink, sent: list[httpx.Request]
) -> Callable[..., DataWriter[Price]]:
    """Build a writer whose requests are answered by ``respond``.

    ``respond`` is either an ``httpx.Response`` returned for every request or
    a callable taking the request.
    """

    def factory(respond: Any, config: WriterConfig | None = None) -> DataWriter[Price]:
        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            if callable(respond):
                return respond(request)
            return respond

        return DataWriter(
            Price,
            StaticSettings(BASE_URL),
            config=config,
            sink=sink,
            transport=httpx.MockTransport(handler),
        )

    return factory


@pytest_asyncio.fixture()
async def table_server() -> AsyncIterator[TableServer]:
    """Run the stub table server on a free port."""
    async with TableServer(TableServerConfig(port=0)) as server:
        yield server
