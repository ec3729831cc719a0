"""Unit tests for the entity contract and TableEntity base."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from nosql_writer.entity import NoSqlEntity, TableEntity
from stubs.support import Price


class TestTableEntity:
    """Tests for the dataclass entity base."""

    def test_satisfies_protocol(self) -> None:
        """TableEntity subclasses conform to NoSqlEntity."""
        price = Price(partition_key="EUR", row_key="USD", bid=1.1, ask=1.2)
        assert isinstance(price, NoSqlEntity)

    def test_table_name(self) -> None:
        """table_name() returns the class constant."""
        assert Price.table_name() == "prices"

    def test_table_name_required(self) -> None:
        """A subclass without TABLE_NAME cannot name its table."""

        @dataclass(kw_only=True)
        class Nameless(TableEntity):
            value: int = 0

        with pytest.raises(TypeError, match="TABLE_NAME"):
            Nameless.table_name()

    def test_to_json_uses_wire_field_names(self) -> None:
        """Keys travel under the server's field names."""
        price = Price(partition_key="EUR", row_key="USD", timestamp=7, bid=1.1, ask=1.2)
        assert price.to_json() == {
            "PartitionKey": "EUR",
            "RowKey": "USD",
            "TimeStamp": 7,
            "bid": 1.1,
            "ask": 1.2,
        }

    def test_from_json(self) -> None:
        """Wire objects decode into the entity type."""
        price = Price.from_json(
            {"PartitionKey": "EUR", "RowKey": "USD", "TimeStamp": 42, "bid": 1.1, "ask": 1.2}
        )
        assert price == Price(partition_key="EUR", row_key="USD", timestamp=42, bid=1.1, ask=1.2)

    def test_from_json_ignores_unknown_fields(self) -> None:
        """Extra server fields are dropped."""
        price = Price.from_json(
            {"PartitionKey": "EUR", "RowKey": "USD", "bid": 1.0, "ask": 2.0, "Expires": None}
        )
        assert price.timestamp == 0

    def test_from_json_missing_field(self) -> None:
        """Missing required fields raise TypeError."""
        with pytest.raises(TypeError):
            Price.from_json({"PartitionKey": "EUR", "bid": 1.0, "ask": 2.0})

    def test_from_json_rejects_non_object(self) -> None:
        """Only JSON objects decode into entities."""
        with pytest.raises(TypeError):
            Price.from_json(["EUR", "USD"])  # type: ignore[arg-type]
