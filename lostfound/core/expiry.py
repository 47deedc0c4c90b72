"""Solicitation Expiry Policy - day-granularity claim window.

Invariants:
    - Both timestamps are converted to UTC and truncated to the day before comparing
    - Expired iff today > day(solicited_at) + window_days (strictly greater)
    - Pure: `now` is injectable, defaults to the current UTC time
"""

from datetime import date, datetime, timedelta, timezone


SOLICITATION_WINDOW_DAYS: int = 3


def _utc_day(value: datetime) -> date:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).date()


def solicitation_expires_on(
    solicited_at: datetime, window_days: int = SOLICITATION_WINDOW_DAYS,
) -> date:
    """Last day on which the solicitation still blocks other applicants."""
    return _utc_day(solicited_at) + timedelta(days=window_days)


def is_solicitation_expired(
    solicited_at: datetime,
    window_days: int = SOLICITATION_WINDOW_DAYS,
    now: datetime | None = None,
) -> bool:
    today = _utc_day(now or datetime.now(timezone.utc))
    return today > solicitation_expires_on(solicited_at, window_days)
