from __future__ import annotations

from datetime import date, datetime, time, timedelta

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError("Invalid date (YYYY-MM-DD)")


def parse_iso_datetime(value: str) -> datetime:
    """Parse 'YYYY-MM-DDTHH:MM' (seconds optional) into a naive local datetime.

    Offsets are rejected and fractions of a second dropped; DATETIME columns
    keep neither.
    """
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise ValidationError("Invalid date/time (YYYY-MM-DDTHH:MM)")
    return to_whole_seconds(parsed)


def to_whole_seconds(value: datetime) -> datetime:
    """Naive local datetime truncated to the second, as stored in DATETIME columns."""
    if value.tzinfo is not None:
        raise ValidationError("Date/time must be local time without a UTC offset")
    return value.replace(microsecond=0)


def parse_hhmm(value: str) -> time:
    v = (value or "").strip()
    try:
        return datetime.strptime(v, "%H:%M").time()
    except ValueError:
        raise ValidationError("Invalid time (HH:MM)")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def week_bounds(day: date) -> tuple[date, date]:
    """Monday of the ISO week containing ``day`` and the following Monday."""
    monday = day - timedelta(days=day.isoweekday() - 1)
    return monday, monday + timedelta(days=7)


def next_occurrence(weekday: int, start_time: time, now: datetime) -> datetime:
    """Date of the next ``weekday`` (today included) at ``start_time``.

    A lesson that is today keeps today's date even if its start time has passed,
    so a late teacher can still open it.
    """
    delta_days = (int(weekday) - now.isoweekday() + 7) % 7
    target = now.date() + timedelta(days=delta_days)
    return datetime.combine(target, start_time)
