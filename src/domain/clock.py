"""
Server-side clock.

Every expiry and deadline comparison goes through ``utcnow`` so tests can
substitute a fixed clock and no client-supplied time is ever trusted.
Datetimes are naive UTC to match the columns they are compared against.
"""

from datetime import UTC, datetime
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)
