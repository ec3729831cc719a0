"""Unit tests for SyncPeriod wire encoding."""

from __future__ import annotations

import pytest

from nosql_writer.sync_period import SyncPeriod, encode


class TestSyncPeriodEncoding:
    """Tests for the syncPeriod query token."""

    @pytest.mark.parametrize(
        ("period", "token"),
        [
            (SyncPeriod.IMMEDIATE, "i"),
            (SyncPeriod.SEC1, "1"),
            (SyncPeriod.SEC5, "5"),
            (SyncPeriod.SEC15, "15"),
            (SyncPeriod.SEC30, "30"),
            (SyncPeriod.MIN1, "60"),
            (SyncPeriod.ASAP, "a"),
        ],
    )
    def test_encode_token(self, period: SyncPeriod, token: str) -> None:
        """Each period maps to its documented token."""
        assert encode(period) == token

    def test_every_member_has_a_distinct_token(self) -> None:
        """No period maps to an empty or shared token."""
        tokens = [encode(period) for period in SyncPeriod]
        assert len(tokens) == 7
        assert all(tokens)
        assert len(set(tokens)) == len(tokens)

    def test_parse_from_token(self) -> None:
        """Periods can be looked up by their wire token."""
        assert SyncPeriod("15") is SyncPeriod.SEC15
        assert SyncPeriod("a") is SyncPeriod.ASAP

    def test_unknown_token_rejected(self) -> None:
        """Unknown tokens raise ValueError."""
        with pytest.raises(ValueError):
            SyncPeriod("2")
