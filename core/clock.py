"""
Core Module - Clock.

============================================================
RESPONSIBILITY
============================================================
Single time source for campaign status derivation and cache expiry.

- Campaign windows are compared against unix seconds from this clock
- Cache entries expire against the same clock
- Tests swap in MockClock to pin "now"

============================================================
DESIGN PRINCIPLES
============================================================
- UTC only
- Injected through constructors, ClockFactory is only the default

============================================================
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional
import threading
import time


# ============================================================
# CLOCK PROTOCOL
# ============================================================

class ClockProtocol(ABC):
    """What campaign status and cache expiry need to know about time."""

    @abstractmethod
    def timestamp(self) -> float:
        """Unix seconds, fractional."""

    def now(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp(), tz=timezone.utc)

    def unix_seconds(self) -> int:
        """Whole unix seconds, the unit campaign start/end times use."""
        return int(self.timestamp())

    def format_iso(self, dt: Optional[datetime] = None) -> str:
        return to_iso8601(dt or self.now())


class SystemClock(ClockProtocol):
    """Host wall clock."""

    def timestamp(self) -> float:
        return time.time()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class MockClock(ClockProtocol):
    """
    Clock that only moves when told to.

    Internally keeps unix seconds so campaign windows can be set up
    directly from the start/end values found in provider payloads.
    """

    def __init__(self, initial_time: Optional[datetime] = None):
        if initial_time is None:
            initial_time = datetime.now(timezone.utc)
        elif initial_time.tzinfo is None:
            initial_time = initial_time.replace(tzinfo=timezone.utc)
        self._ts = initial_time.timestamp()
        self._lock = threading.Lock()

    @classmethod
    def at_timestamp(cls, ts: float) -> "MockClock":
        clock = cls()
        clock.set_timestamp(ts)
        return clock

    def timestamp(self) -> float:
        with self._lock:
            return self._ts

    def set_timestamp(self, ts: float) -> None:
        with self._lock:
            self._ts = float(ts)

    def set_time(self, new_time: datetime) -> None:
        if new_time.tzinfo is None:
            new_time = new_time.replace(tzinfo=timezone.utc)
        self.set_timestamp(new_time.timestamp())

    def advance(self, seconds: float = 0, **kwargs) -> None:
        """Move forward; keyword arguments are timedelta units (days=30, hours=1)."""
        step = timedelta(seconds=seconds, **kwargs).total_seconds()
        with self._lock:
            self._ts += step


# ============================================================
# DEFAULT CLOCK
# ============================================================

class ClockFactory:
    """Process-wide fallback for components built without a clock."""

    _instance: Optional[ClockProtocol] = None
    _lock = threading.Lock()

    @classmethod
    def get_clock(cls) -> ClockProtocol:
        with cls._lock:
            if cls._instance is None:
                cls._instance = SystemClock()
            return cls._instance

    @classmethod
    def set_clock(cls, clock: ClockProtocol) -> None:
        with cls._lock:
            cls._instance = clock

    @classmethod
    def reset(cls) -> None:
        with cls._lock:
            cls._instance = None


def to_iso8601(dt: datetime) -> str:
    """ISO 8601 in UTC with milliseconds and a trailing Z (2025-01-01T00:00:00.000Z)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "ClockFactory",
    "to_iso8601",
]
