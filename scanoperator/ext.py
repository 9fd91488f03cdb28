"""Small helpers: clocks, identifier generators and collection utilities."""

from __future__ import annotations

import itertools
import threading
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

_UINT64_MASK = (1 << 64) - 1


class SystemClock:
    """Clock that reports the current wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FixedClock:
    """Clock that always reports the same instant; handy in tests."""

    fixed_time: datetime

    def now(self) -> datetime:
        return self.fixed_time


class UUIDGenerator:
    """Generates random (version 4) UUID strings."""

    def generate_id(self) -> str:
        return str(uuid.uuid4())


class SimpleIDGenerator:
    """Generates predictable UUID-shaped identifiers counting up from 1."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def generate_id(self) -> str:
        with self._lock:
            value = next(self._counter) & _UINT64_MASK
        return f"00000000-0000-0000-0000-{value:012d}"


def contains_string(items: Iterable[str], value: str) -> bool:
    """Return True if ``value`` is one of ``items``."""
    return value in items


def min_int(a: int, b: int) -> int:
    """Return the smaller of two integers."""
    return min(a, b)