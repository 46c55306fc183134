"""Decide whether a scheduler tick is a user's local reminder moment.

The scheduler polls on a fixed grid (every 15 minutes by default), so it can
never land on an arbitrary user-chosen minute. Both the user's preferred time
and the tick's local time are rounded to the nearest grid point before they
are compared. Dedupe is by local calendar date, not by elapsed time, so a
retried tick or a daylight-saving shift never produces a second send on the
same day.
"""
from __future__ import annotations

import re
from datetime import date, datetime, timezone, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger

from auralog.models.user import DEFAULT_PREFERRED_TIME, DEFAULT_TIMEZONE

GRID_MINUTES = 15
MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"^\s*(\d{1,2})(?::(\d{1,2}))?\s*$")


def parse_preferred_time(value: Optional[str]) -> Tuple[int, int]:
    """Parse "HH:MM" into (hour, minute), clamped to a valid clock time.

    A missing minute part means minute 0. Anything unparseable falls back
    to 09:00.
    """
    match = _TIME_PATTERN.match(value or DEFAULT_PREFERRED_TIME)
    if match is None:
        match = _TIME_PATTERN.match(DEFAULT_PREFERRED_TIME)
    hour = min(23, max(0, int(match.group(1))))
    minute = min(59, max(0, int(match.group(2) or 0)))
    return hour, minute


def round_to_grid(hour: int, minute: int, grid_minutes: int = GRID_MINUTES) -> Tuple[int, int]:
    """Round a clock time to the nearest grid point.

    Halves round up. A minute that rounds to 60 carries into the next hour,
    and 23:53 wraps to 00:00.
    """
    total = hour * 60 + minute
    rounded = (total + grid_minutes // 2) // grid_minutes * grid_minutes
    rounded %= MINUTES_PER_DAY
    return divmod(rounded, 60)


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """Return the IANA zone for ``name``; unknown or empty names mean UTC."""
    if not name:
        return ZoneInfo(DEFAULT_TIMEZONE)
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.debug(f"Unknown timezone {name!r}, using UTC")
        return ZoneInfo(DEFAULT_TIMEZONE)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as stored by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_naive_utc(value: datetime) -> datetime:
    return as_utc(value).replace(tzinfo=None)


def local_date(value: datetime, zone: tzinfo) -> date:
    return as_utc(value).astimezone(zone).date()


def is_due(user, now_utc: datetime, grid_minutes: int = GRID_MINUTES) -> bool:
    """True when ``now_utc`` is the user's reminder slot and nothing was sent today."""
    zone = resolve_timezone(user.timezone)
    local_now = as_utc(now_utc).astimezone(zone)

    target = round_to_grid(*parse_preferred_time(user.preferred_time), grid_minutes)
    current = round_to_grid(local_now.hour, local_now.minute, grid_minutes)
    if current != target:
        return False

    if user.last_sent_at is None:
        return True
    return local_date(user.last_sent_at, zone) != local_now.date()


def has_push_token(user) -> bool:
    token = user.push_token
    return isinstance(token, str) and bool(token.strip())


def is_eligible(user, now_utc: datetime, grid_minutes: int = GRID_MINUTES) -> bool:
    """Opted in, has a device token, and is due in this tick."""
    if not user.notifications_enabled or not has_push_token(user):
        return False
    return is_due(user, now_utc, grid_minutes)
