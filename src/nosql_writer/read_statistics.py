"""Read-statistics headers attached to read requests.

A read can ask the server to touch the last-read time of the partition or rows
it returns, and to set or clear their expiration moment. Each expiration is
tri-state: not requested (``None``), cleared (``Expiration.clear()``), or set
to a moment (``Expiration.at(moment)``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Self

from nosql_writer.request import WriterRequest

PARTITION_READ_HEADER = "updatePartitionLastReadTime"
ROWS_READ_HEADER = "updateRowsLastReadTime"
PARTITION_EXPIRATION_HEADER = "setPartitionExpirationTime"
ROWS_EXPIRATION_HEADER = "setRowsExpirationTime"
CLEAR_TOKEN = "Null"


def format_moment(moment: datetime) -> str:
    """RFC 3339 rendering of ``moment``; naive datetimes are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.isoformat()


@dataclass(frozen=True, slots=True)
class Expiration:
    """A requested expiration change. ``moment=None`` clears the expiration."""

    moment: datetime | None = None

    @classmethod
    def clear(cls) -> Self:
        return cls(None)

    @classmethod
    def at(cls, moment: datetime) -> Self:
        return cls(moment)

    @property
    def header_value(self) -> str:
        if self.moment is None:
            return CLEAR_TOKEN
        return format_moment(self.moment)


@dataclass(frozen=True, slots=True)
class ReadStatisticsUpdate:
    """Bookkeeping the server should apply while serving a read.

    Attributes:
        update_partition_read_access: Touch the partition's last-read time.
        update_row_read_access: Touch the returned rows' last-read time.
        update_partition_expiration: Partition expiration change, if any.
        update_rows_expiration: Rows expiration change, if any.
    """

    update_partition_read_access: bool = False
    update_row_read_access: bool = False
    update_partition_expiration: Expiration | None = None
    update_rows_expiration: Expiration | None = None

    def headers(self) -> list[tuple[str, str]]:
        """Zero to four header pairs describing this update."""
        result: list[tuple[str, str]] = []
        if self.update_partition_read_access:
            result.append((PARTITION_READ_HEADER, "true"))
        if self.update_row_read_access:
            result.append((ROWS_READ_HEADER, "true"))
        if self.update_partition_expiration is not None:
            result.append(
                (PARTITION_EXPIRATION_HEADER, self.update_partition_expiration.header_value)
            )
        if self.update_rows_expiration is not None:
            result.append((ROWS_EXPIRATION_HEADER, self.update_rows_expiration.header_value))
        return result

    def apply(self, request: WriterRequest) -> WriterRequest:
        """Return ``request`` with this update's headers attached."""
        for name, value in self.headers():
            request = request.with_header(name, value)
        return request
