"""Timezone-aware datetime helpers"""

import time
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def current_millis() -> int:
    """Current time as integer epoch milliseconds"""
    return time.time_ns() // 1_000_000


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    Naive values are assumed to already be UTC (SQLite drops tzinfo on read).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def from_timestamp_ms_utc(millis: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime"""
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
