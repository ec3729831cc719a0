"""Observability sinks for writer failures."""

from nosql_writer.observability.jsonl import JsonlSink, JsonlSinkConfig
from nosql_writer.observability.sink import (
    FailureEvent,
    LoggingSink,
    ObservabilitySink,
    report_safely,
)

__all__ = [
    "FailureEvent",
    "JsonlSink",
    "JsonlSinkConfig",
    "LoggingSink",
    "ObservabilitySink",
    "report_safely",
]
