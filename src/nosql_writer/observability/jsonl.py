"""JSONL file sink with buffered async writes."""

import asyncio
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Self

import aiofiles

from nosql_writer.observability.sink import FailureEvent


@dataclass
class JsonlSinkConfig:
    """Configuration for JsonlSink.

    Attributes:
        file_path: Path to the JSONL output file.
        buffer_size: Number of events to buffer before auto-flush.
        append: Append to an existing file instead of truncating it.
    """

    file_path: Path
    buffer_size: int = 100
    append: bool = True


class JsonlSink:
    """Failure sink appending one JSON object per line to a file.

    Events are buffered in memory and flushed when the buffer reaches
    `buffer_size`, on explicit flush, or on close. Opening and flushing are
    serialized, so one sink may be shared by concurrent writer calls.

    Example:
        ```python
        async with JsonlSink(JsonlSinkConfig(Path("failures.jsonl"))) as sink:
            writer = DataWriter(Price, settings, sink=sink)
            ...
        ```
    """

    def __init__(self, config: JsonlSinkConfig) -> None:
        """Initialize the JSONL sink.

        Args:
            config: Sink configuration.
        """
        self._config = config
        self._buffer: list[str] = []
        self._file: Any = None
        self._closed = False
        self._file_descriptor: int | None = None
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> Self:
        """Enter async context manager and open the file.

        Returns:
            Self for context manager protocol.
        """
        await self._open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager and close the file.

        Args:
            exc_type: Exception type if an error occurred.
            exc_val: Exception value if an error occurred.
            exc_tb: Exception traceback if an error occurred.
        """
        await self.close()

    async def _open(self) -> None:
        """Open the output file once; later calls are no-ops."""
        async with self._lock:
            if self._file is not None or self._closed:
                return
            self._file = await aiofiles.open(
                self._config.file_path,
                mode="a" if self._config.append else "w",
                encoding="utf-8",
                newline="\n",
            )
            self._file_descriptor = self._file.fileno()

    async def report(self, event: FailureEvent) -> None:
        """Buffer ``event``, flushing when the buffer is full.

        Args:
            event: Failure to record.

        Raises:
            RuntimeError: If the sink has been closed.
        """
        if self._closed:
            raise RuntimeError("Cannot report to closed sink")

        await self._open()

        self._buffer.append(json.dumps(event.to_record(), ensure_ascii=False))

        if len(self._buffer) >= self._config.buffer_size:
            await self.flush()

    async def flush(self) -> None:
        """Write buffered events to disk and fsync."""
        async with self._lock:
            if not self._file or not self._buffer:
                return

            # Events reported while writing go to the next flush.
            lines, self._buffer = self._buffer, []
            await self._file.write("".join(line + "\n" for line in lines))

            await self._file.flush()
            if self._file_descriptor is not None:
                os.fsync(self._file_descriptor)

    async def close(self) -> None:
        """Flush remaining events and close the file."""
        if self._closed:
            return

        self._closed = True
        await self.flush()

        async with self._lock:
            if self._file:
                await self._file.close()
                self._file = None
                self._file_descriptor = None
