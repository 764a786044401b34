"""
Timestamp value type.

A point in time as whole seconds since the Unix epoch plus a
non-negative nanosecond fraction, so pre-epoch instants keep
``0 <= nanoseconds < 1e9`` (``-54.001s`` is ``seconds=-55,
nanoseconds=999000000``).

Author: LocalFire Team
Date: 2026-10-19
"""

import time
from datetime import datetime, timedelta, timezone
from functools import total_ordering
from typing import Any

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NANOS_PER_SECOND = 1_000_000_000
_NANOS_PER_MILLI = 1_000_000
# 0001-01-01T00:00:00Z, the earliest instant the service stores
_MIN_SECONDS = -62135596800


@total_ordering
class Timestamp:
    """Seconds/nanoseconds instant."""

    __slots__ = ("seconds", "nanoseconds")

    def __init__(self, seconds: int, nanoseconds: int = 0):
        """Initialize timestamp.

        Args:
            seconds: Whole seconds since the epoch (may be negative)
            nanoseconds: Fraction of the second, ``0 <= n < 1e9``

        Raises:
            ValueError: If ``nanoseconds`` is out of range
        """
        if not 0 <= nanoseconds < _NANOS_PER_SECOND:
            raise ValueError(f"Timestamp nanoseconds out of range: {nanoseconds}")
        self.seconds = int(seconds)
        self.nanoseconds = int(nanoseconds)

    @classmethod
    def now(cls) -> "Timestamp":
        seconds, nanoseconds = divmod(time.time_ns(), _NANOS_PER_SECOND)
        return cls(seconds, nanoseconds)

    @classmethod
    def from_millis(cls, millis: float) -> "Timestamp":
        seconds, remainder = divmod(int(millis), 1000)
        return cls(seconds, remainder * _NANOS_PER_MILLI)

    @classmethod
    def from_date(cls, date: datetime) -> "Timestamp":
        """Convert a ``datetime``; naive values are taken as UTC."""
        if date.tzinfo is None:
            date = date.replace(tzinfo=timezone.utc)
        delta = date - _EPOCH
        micros = (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
        seconds, micro_fraction = divmod(micros, 1_000_000)
        return cls(seconds, micro_fraction * 1000)

    def to_date(self) -> datetime:
        """Aware UTC ``datetime`` (microsecond precision)."""
        return _EPOCH + timedelta(seconds=self.seconds, microseconds=self.nanoseconds // 1000)

    def to_millis(self) -> int:
        return self.seconds * 1000 + self.nanoseconds // _NANOS_PER_MILLI

    def value_of(self) -> str:
        """String whose lexical order matches chronological order."""
        return f"{self.seconds - _MIN_SECONDS:012d}.{self.nanoseconds:09d}"

    def is_equal(self, other: Any) -> bool:
        return (
            isinstance(other, Timestamp)
            and self.seconds == other.seconds
            and self.nanoseconds == other.nanoseconds
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Timestamp):
            return NotImplemented
        return self.is_equal(other)

    def __lt__(self, other: "Timestamp") -> bool:
        if not isinstance(other, Timestamp):
            return NotImplemented
        return (self.seconds, self.nanoseconds) < (other.seconds, other.nanoseconds)

    def __hash__(self) -> int:
        return hash((self.seconds, self.nanoseconds))

    def __repr__(self) -> str:
        return f"Timestamp(seconds={self.seconds}, nanoseconds={self.nanoseconds})"
