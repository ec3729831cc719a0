"""Entity contract for rows stored through a data writer.

Any type used with :class:`~nosql_writer.writer.DataWriter` must satisfy
:class:`NoSqlEntity`: a constant table name, the partition/row key pair that
locates the row, a last-modification timestamp, and conversion to and from the
JSON object sent over the wire.

:class:`TableEntity` is a dataclass base that implements the contract using the
server's field names (``PartitionKey``, ``RowKey``, ``TimeStamp``).
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, ClassVar, Protocol, Self, runtime_checkable


@runtime_checkable
class NoSqlEntity(Protocol):
    """Protocol every row type must implement."""

    @classmethod
    def table_name(cls) -> str:
        """Name of the table holding rows of this type."""
        ...

    @property
    def partition_key(self) -> str:
        """Partition the row belongs to."""
        ...

    @property
    def row_key(self) -> str:
        """Key of the row inside its partition."""
        ...

    @property
    def timestamp(self) -> int:
        """Last modification moment as reported by the server."""
        ...

    def to_json(self) -> dict[str, Any]:
        """Serialize the row to its wire JSON object."""
        ...

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Self:
        """Build a row from its wire JSON object.

        Raises:
            KeyError, TypeError, ValueError: If ``data`` does not describe a row.
        """
        ...


# Python attribute name -> wire field name for the keys every row carries.
WIRE_FIELDS: dict[str, str] = {
    "partition_key": "PartitionKey",
    "row_key": "RowKey",
    "timestamp": "TimeStamp",
}


@dataclass(kw_only=True)
class TableEntity:
    """Dataclass base implementing :class:`NoSqlEntity`.

    Subclasses set ``TABLE_NAME`` and declare their own fields, which travel
    under their Python names.

    Example:
        ```python
        @dataclass(kw_only=True)
        class Price(TableEntity):
            TABLE_NAME = "prices"

            bid: float
            ask: float
        ```
    """

    TABLE_NAME: ClassVar[str] = ""

    partition_key: str
    row_key: str
    timestamp: int = 0

    @classmethod
    def table_name(cls) -> str:
        if not cls.TABLE_NAME:
            raise TypeError(f"{cls.__name__} does not define TABLE_NAME")
        return cls.TABLE_NAME

    def to_json(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for field in dataclasses.fields(self):
            result[WIRE_FIELDS.get(field.name, field.name)] = getattr(self, field.name)
        return result

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Self:
        if not isinstance(data, dict):
            raise TypeError(f"Expected a JSON object, got {type(data).__name__}")

        kwargs: dict[str, Any] = {}
        for field in dataclasses.fields(cls):
            wire_name = WIRE_FIELDS.get(field.name, field.name)
            if wire_name in data:
                kwargs[field.name] = data[wire_name]
        # Missing required fields surface as TypeError from the constructor.
        return cls(**kwargs)
