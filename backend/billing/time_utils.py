# Overview: UTC time helpers; the database stores naive UTC datetimes.

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as naive UTC, the form every DateTime column holds."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an API datetime into naive UTC.

    Accepts a bare date ("2026-03-15", midnight UTC), a naive datetime
    (taken as UTC) or an offset datetime including a trailing "Z".
    Blank input gives None; anything else unparseable raises ValueError.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None

    if len(text) == 10:
        return datetime.combine(date.fromisoformat(text), time.min)
    if text[-1] in "zZ":
        text = f"{text[:-1]}+00:00"
    return as_naive_utc(datetime.fromisoformat(text))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Render as "2026-03-15T10:00:00Z"; naive values are taken as UTC."""
    if dt is None:
        return None
    return as_naive_utc(dt).replace(microsecond=0).isoformat() + "Z"


def start_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.min)


def end_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.max)


def start_of_month(dt: datetime) -> datetime:
    return datetime.combine(dt.date().replace(day=1), time.min)
