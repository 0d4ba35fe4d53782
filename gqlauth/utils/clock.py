"""Time source and secure random values"""
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional


class Clock:
    """Wall-clock time source (UTC)"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock(Clock):
    """Clock pinned to a fixed instant; advance it manually."""

    def __init__(self, instant: Optional[datetime] = None) -> None:
        self._instant = as_utc(instant or datetime.now(timezone.utc))

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = as_utc(instant)

    def advance(self, **delta) -> None:
        self._instant = self._instant + timedelta(**delta)


def generate_random_string() -> str:
    """Return a URL-safe string carrying 32 bytes of entropy"""
    return secrets.token_urlsafe(32)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_seconds(value: datetime) -> int:
    return int(as_utc(value).timestamp())


def to_millis(value: datetime) -> int:
    return to_seconds(value) * 1000


def microtime(value: datetime) -> str:
    """Seconds since epoch with microsecond precision, e.g. ``1700000000.123456``"""
    return f"{as_utc(value).timestamp():.6f}"


def naive_utc(value: datetime) -> datetime:
    """UTC datetime without tzinfo, the form stored in DateTime columns"""
    return as_utc(value).replace(tzinfo=None)


def utcnow() -> datetime:
    """Naive UTC now, used for audit timestamp column defaults"""
    return naive_utc(datetime.now(timezone.utc))
