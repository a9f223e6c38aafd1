from __future__ import annotations

import calendar
from datetime import MAXYEAR, MINYEAR, date, datetime, timezone

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


def now_utc() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def today_utc() -> date:
    return now_utc().date()


def to_calendar_day(value) -> date:
    """Normalize a date, datetime or ISO string to its UTC calendar day.

    Naive datetimes are taken as UTC. Aware datetimes are converted to UTC
    first, so 23:30 at UTC-2 lands on the next day.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if "T" in text or " " in text:
            try:
                return to_calendar_day(datetime.fromisoformat(text.replace("Z", "+00:00")))
            except ValueError:
                raise ValidationError(f"Invalid date: {value!r}")
        return parse_iso_date(text)
    raise ValidationError(f"Invalid date: {value!r}")


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    if not 1 <= int(month) <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if not MINYEAR <= int(year) <= MAXYEAR:
        raise ValidationError(f"Year must be between {MINYEAR} and {MAXYEAR}")
    last = calendar.monthrange(int(year), int(month))[1]
    return date(int(year), int(month), 1), date(int(year), int(month), last)
