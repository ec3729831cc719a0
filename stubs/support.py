"""Row types, sinks and responses shared by the test suite."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import httpx

from nosql_writer.entity import TableEntity
from nosql_writer.observability.sink import FailureEvent

BASE_URL = "http://nosql.test:5123"


@dataclass(kw_only=True)
class Price(TableEntity):
    """Quote of one instrument, partitioned by base currency."""

    TABLE_NAME = "prices"

    bid: float
    ask: float


@dataclass
class RecordingSink:
    """Sink keeping every reported event in memory."""

    events: list[FailureEvent] = field(default_factory=list)

    async def report(self, event: FailureEvent) -> None:
        self.events.append(event)


class BrokenSink:
    """Sink failing on every report."""

    async def report(self, event: FailureEvent) -> None:
        raise RuntimeError("sink is down")


def json_response(status_code: int, payload: Any) -> httpx.Response:
    """Response with a JSON body."""
    return httpx.Response(status_code, content=json.dumps(payload).encode("utf-8"))
