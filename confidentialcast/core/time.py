"""
confidentialcast/core/time.py

Clocks and period arithmetic.

The engine never reads wall-clock time directly. Every transaction
carries the timestamp it was ordered at, taken from a Clock by the
executor, and every period check derives from that timestamp. Replay
never consults a clock: each journal entry's recorded timestamp is
handed to the executor as the transaction time.

Wire format for timestamps in notifications and CLI output:
    YYYY-MM-DDTHH:MM:SS.mmmZ  (milliseconds, explicit Z, no +00:00)
"""

import time
from datetime import datetime, timezone
from typing import Protocol

DAY_SECONDS = 24 * 60 * 60


class Clock(Protocol):
    """Source of unix timestamps in whole seconds."""

    def now(self) -> int:
        ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """
    A clock that only moves when told to.

    Default clock of in_memory_runtime; tests step it across period
    boundaries.
    """

    def __init__(self, start: int = 0) -> None:
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def set(self, timestamp: int) -> None:
        self._now = int(timestamp)

    def advance(self, seconds: int) -> None:
        if seconds < 0:
            raise ValueError(f"ManualClock cannot move backwards ({seconds}s)")
        self._now += int(seconds)


def period_of(timestamp: int, period_length: int = DAY_SECONDS) -> int:
    """Index of the fixed-length period containing timestamp."""
    if period_length <= 0:
        raise ValueError(f"period_length must be positive, got {period_length}")
    return int(timestamp) // period_length


def period_start(period: int, period_length: int = DAY_SECONDS) -> int:
    """First second of a period."""
    return int(period) * period_length


def iso_timestamp(timestamp: int) -> str:
    """Render a unix timestamp in wire format."""
    dt = datetime.fromtimestamp(int(timestamp), timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"
