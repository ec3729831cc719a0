"""Value types shared by the data writer components.

This module defines the call-scoped parameter objects, the wire shape of
structured server failures, and the writer's immutable configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Self

from nosql_writer.sync_period import SyncPeriod


@dataclass(frozen=True, slots=True)
class CreateTableParams:
    """Parameters of a table creation request.

    Optional amounts left as ``None`` are omitted from the request entirely so
    the server applies its own defaults.

    Attributes:
        persist: Whether the server keeps the table on durable storage.
        max_partitions_amount: Upper bound on partitions kept in the table.
        max_rows_per_partition_amount: Upper bound on rows kept per partition.

    Raises:
        ValueError: If an amount is given and is not a positive integer.
    """

    persist: bool = True
    max_partitions_amount: int | None = None
    max_rows_per_partition_amount: int | None = None

    def __post_init__(self) -> None:
        for name in ("max_partitions_amount", "max_rows_per_partition_amount"):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise ValueError(f"{name} must be a positive integer")

    def query_params(self) -> list[tuple[str, str]]:
        """Query pairs for this configuration, in a fixed order."""
        params = [("persist", "1" if self.persist else "0")]
        if self.max_partitions_amount is not None:
            params.append(("maxPartitionsAmount", str(self.max_partitions_amount)))
        if self.max_rows_per_partition_amount is not None:
            params.append(
                ("maxRowsPerPartitionAmount", str(self.max_rows_per_partition_amount))
            )
        return params


@dataclass(frozen=True, slots=True)
class OperationFailContract:
    """Body of a structured 400 response.

    Attributes:
        reason: Machine readable failure tag, e.g. ``TableNotFound``.
        message: Human readable description.
    """

    reason: str
    message: str

    @classmethod
    def from_json(cls, data: Any) -> Self:
        """Build the contract from decoded JSON.

        Raises:
            ValueError: If ``data`` is not an object with string reason/message.
        """
        if not isinstance(data, dict):
            raise ValueError("fail contract must be a JSON object")
        reason = data.get("reason")
        message = data.get("message")
        if not isinstance(reason, str) or not isinstance(message, str):
            raise ValueError("fail contract requires string 'reason' and 'message'")
        return cls(reason=reason, message=message)


@dataclass(frozen=True, slots=True)
class ConnectionConfig:
    """Configuration for the HTTP connection pool.

    Attributes:
        max_connections: Maximum number of concurrent connections (default: 100).
        timeout: Request timeout in seconds (default: 30.0).
        max_keepalive_connections: Maximum keep-alive connections to maintain (default: 20).
        keepalive_expiry: Seconds before closing idle keep-alive connections (default: 30.0).
        http2: Enable HTTP/2 multiplexing where the server supports it (default: True).
    """

    max_connections: int = 100
    timeout: float = 30.0
    max_keepalive_connections: int = 20
    keepalive_expiry: float = 30.0
    http2: bool = True


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str) -> int | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return int(value)


@dataclass(frozen=True, slots=True)
class WriterConfig:
    """Immutable configuration of a data writer.

    Attributes:
        sync_period: Propagation hint sent with every write (default: SEC5).
        auto_create_table: Provision the table in the background when the
            writer is constructed (default: False).
        table_params: Parameters used whenever the writer creates its table.
        connection: HTTP connection pool settings.
    """

    sync_period: SyncPeriod = SyncPeriod.SEC5
    auto_create_table: bool = False
    table_params: CreateTableParams = field(default_factory=CreateTableParams)
    connection: ConnectionConfig = field(default_factory=ConnectionConfig)

    @classmethod
    def from_env(cls, prefix: str = "NOSQL_WRITER_") -> Self:
        """Load configuration from environment variables.

        Reads ``{prefix}SYNC_PERIOD`` (a wire token such as ``5`` or ``a``),
        ``{prefix}AUTO_CREATE_TABLE``, ``{prefix}PERSIST``,
        ``{prefix}MAX_PARTITIONS_AMOUNT``, ``{prefix}MAX_ROWS_PER_PARTITION_AMOUNT``
        and ``{prefix}TIMEOUT``.

        Raises:
            ValueError: If a variable holds an unparseable value.
        """
        return cls(
            sync_period=SyncPeriod(os.getenv(f"{prefix}SYNC_PERIOD", SyncPeriod.SEC5.value)),
            auto_create_table=_env_bool(f"{prefix}AUTO_CREATE_TABLE", "false"),
            table_params=CreateTableParams(
                persist=_env_bool(f"{prefix}PERSIST", "true"),
                max_partitions_amount=_env_int(f"{prefix}MAX_PARTITIONS_AMOUNT"),
                max_rows_per_partition_amount=_env_int(f"{prefix}MAX_ROWS_PER_PARTITION_AMOUNT"),
            ),
            connection=ConnectionConfig(timeout=float(os.getenv(f"{prefix}TIMEOUT", "30.0"))),
        )
