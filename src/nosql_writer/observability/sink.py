"""Sinks receiving structured failure events from the data writer."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True, slots=True)
class FailureEvent:
    """A failed writer call, reported with its target endpoint.

    Attributes:
        method: HTTP method of the failed request.
        url: Full URL of the failed request.
        error_kind: Name of the error raised, e.g. ``TableNotFound``.
        message: Error message.
        status_code: HTTP status, or None when no response was received.
        timestamp: UTC ISO-8601 moment the failure was observed.
    """

    method: str
    url: str
    error_kind: str
    message: str
    status_code: int | None = None
    timestamp: str = field(default_factory=_utc_now)

    def to_record(self) -> dict[str, Any]:
        record = asdict(self)
        record["event"] = "nosql_writer_request_failed"
        return record


@runtime_checkable
class ObservabilitySink(Protocol):
    """Destination for failure events."""

    async def report(self, event: FailureEvent) -> None:
        """Record one failure event."""
        ...


class LoggingSink:
    """Sink writing each event as a JSON log line at ERROR level."""

    def __init__(self, logger_name: str = "nosql_writer.failures") -> None:
        self._logger = logging.getLogger(logger_name)

    async def report(self, event: FailureEvent) -> None:
        self._logger.error(json.dumps(event.to_record()))


async def report_safely(sink: ObservabilitySink, event: FailureEvent) -> None:
    """Hand ``event`` to ``sink`` without letting sink failures escape."""
    try:
        await sink.report(event)
    except Exception:
        logger.exception("Observability sink %r failed to report %s", sink, event.error_kind)
