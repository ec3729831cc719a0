"""Write propagation hints understood by the table server."""

from __future__ import annotations

from enum import Enum


class SyncPeriod(str, Enum):
    """How soon the server should persist and propagate a write.

    Each member's value is the token sent in the ``syncPeriod`` query parameter.

    Attributes:
        IMMEDIATE: Synchronise before acknowledging the write.
        SEC1: Within one second.
        SEC5: Within five seconds.
        SEC15: Within fifteen seconds.
        SEC30: Within thirty seconds.
        MIN1: Within one minute.
        ASAP: As soon as the server is able to.
    """

    IMMEDIATE = "i"
    SEC1 = "1"
    SEC5 = "5"
    SEC15 = "15"
    SEC30 = "30"
    MIN1 = "60"
    ASAP = "a"

    @property
    def token(self) -> str:
        """Wire token for this period."""
        return self.value


def encode(period: SyncPeriod) -> str:
    """Return the ``syncPeriod`` query value for ``period``."""
    return period.token
