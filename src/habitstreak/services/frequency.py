"""Frequency rules deciding whether a habit is overdue or done today."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..models.habit import Habit, HabitFrequency
from .dates import elapsed_whole_days, parse_timestamp

OVERDUE_THRESHOLD_DAYS: dict[str, int] = {
    HabitFrequency.DAILY.value: 1,
    HabitFrequency.WEEKLY.value: 7,
    HabitFrequency.MONTHLY.value: 30,
}


def overdue_threshold_days(frequency: str | HabitFrequency) -> Optional[int]:
    """Days without a completion after which a habit counts as overdue."""

    key = frequency.value if isinstance(frequency, HabitFrequency) else str(frequency)
    return OVERDUE_THRESHOLD_DAYS.get(key)


def is_overdue(habit: Habit, *, now: datetime | None = None) -> bool:
    """Return True when the habit has gone too long without a completion.

    A habit never completed is overdue. Unknown frequencies are never overdue.
    """

    if habit.last_completed is None:
        return True

    threshold = overdue_threshold_days(habit.frequency)
    if threshold is None:
        return False

    current = parse_timestamp(now) if now is not None else datetime.now()
    return elapsed_whole_days(current, parse_timestamp(habit.last_completed)) >= threshold


def is_completed_today(habit: Habit, *, now: datetime | None = None) -> bool:
    """Return True when the last completion falls on today's local date."""

    if habit.last_completed is None:
        return False

    current = parse_timestamp(now) if now is not None else datetime.now()
    return parse_timestamp(habit.last_completed).date() == current.date()


__all__ = [
    "OVERDUE_THRESHOLD_DAYS",
    "is_completed_today",
    "is_overdue",
    "overdue_threshold_days",
]
