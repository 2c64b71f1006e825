"""
Naive-UTC datetime helpers.

All timestamps are stored and compared as naive datetimes in UTC so that
SQLite (which drops tzinfo) and PostgreSQL behave the same.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_timestamp(value: datetime) -> float:
    return as_naive_utc(value).replace(tzinfo=timezone.utc).timestamp()


def from_timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)


def minutes_between(start: datetime, end: datetime) -> float:
    return (as_naive_utc(end) - as_naive_utc(start)).total_seconds() / 60
