"""Timestamp parsing and calendar-day normalization."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

MS_PER_DAY = 86_400_000


class InvalidTimestampError(ValueError):
    """Raised when a completion timestamp cannot be interpreted."""


def parse_timestamp(value: Any) -> datetime:
    """Return ``value`` as a naive local datetime.

    Accepts datetimes, dates and ISO-8601 strings (a trailing ``Z`` is read as
    UTC). Aware values are converted to local time before the zone is dropped;
    naive values are taken as already local.
    """

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = f"{text[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise InvalidTimestampError(f"Unparseable timestamp: {value!r}") from exc
    else:
        raise InvalidTimestampError(
            f"Unsupported timestamp type {type(value).__name__}: {value!r}"
        )

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def local_day(value: Any) -> date:
    """Truncate a timestamp to its local calendar day."""

    return parse_timestamp(value).date()


def days_between(later: date, earlier: date) -> int:
    """Whole calendar days from ``earlier`` to ``later``."""

    return (later - earlier).days


def elapsed_whole_days(now: datetime, then: datetime) -> int:
    """Floor of the elapsed time in days, measured in milliseconds."""

    delta = now - then
    elapsed_ms = (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000
    return elapsed_ms // MS_PER_DAY


def start_of_day(moment: datetime | None = None) -> datetime:
    """Local midnight of the given moment (default: now)."""

    moment = moment or datetime.now()
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


__all__ = [
    "InvalidTimestampError",
    "MS_PER_DAY",
    "days_between",
    "elapsed_whole_days",
    "local_day",
    "parse_timestamp",
    "start_of_day",
]
