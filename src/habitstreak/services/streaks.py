"""Streak derivation from a habit's completion history.

Streaks are counted in local calendar days. The engine never persists or
mutates anything; it is recomputed from the raw completion list on every read.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional

from .dates import days_between, local_day, parse_timestamp


@dataclass(frozen=True)
class StreakData:
    """Derived streak statistics for one habit."""

    current_streak: int = 0
    longest_streak: int = 0
    total_completions: int = 0
    last_completed_date: Optional[str] = None

    def as_payload(self) -> dict[str, Any]:
        """Render the camelCase wire shape consumed by presentation code."""

        return {
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "totalCompletions": self.total_completions,
            "lastCompletedDate": self.last_completed_date,
        }


EMPTY_STREAK = StreakData()


def _raw_completed_at(item: Any) -> Any:
    if isinstance(item, Mapping):
        try:
            return item["completed_at"]
        except KeyError as exc:
            raise KeyError(f"Completion record has no completed_at: {item!r}") from exc
    return item.completed_at


def _original_text(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    return raw.isoformat()


def _current_streak(days: list[date], today: date) -> int:
    """Consecutive days ending today or yesterday, walking back from the newest."""

    if days_between(today, days[0]) > 1:
        return 0

    streak = 1
    cursor = days[0]
    for day in days[1:]:
        gap = days_between(cursor, day)
        if gap == 0:
            continue
        if gap != 1:
            break
        streak += 1
        cursor = day
    return streak


def _longest_streak(days: list[date]) -> int:
    longest = 0
    run = 1
    previous = days[0]
    for day in days[1:]:
        gap = days_between(previous, day)
        if gap == 0:
            continue
        if gap == 1:
            run += 1
        else:
            longest = max(longest, run)
            run = 1
        previous = day
    return max(longest, run)


def calculate_streak(
    completions: Iterable[Any], *, today: date | datetime | None = None
) -> StreakData:
    """Compute streak statistics from an unordered completion history.

    ``completions`` may hold ``HabitCompletion`` rows, objects exposing
    ``completed_at`` or mappings with a ``completed_at`` key. Each
    ``completed_at`` is a datetime or an ISO-8601 string.

    Several completions on one day count once toward a streak but each one
    counts toward ``total_completions``. Equal timestamps keep their input
    order.

    Raises:
        InvalidTimestampError: a ``completed_at`` value cannot be parsed.
    """

    records = list(completions)
    if not records:
        return EMPTY_STREAK

    if today is None:
        today_day = date.today()
    elif isinstance(today, datetime):
        today_day = parse_timestamp(today).date()
    else:
        today_day = today

    raw_values = [_raw_completed_at(item) for item in records]
    parsed = [(parse_timestamp(raw), raw) for raw in raw_values]
    # sorted() is stable with reverse=True, so ties keep their input order
    ordered = sorted(parsed, key=lambda pair: pair[0], reverse=True)
    days = [local_day(moment) for moment, _ in ordered]

    return StreakData(
        current_streak=_current_streak(days, today_day),
        longest_streak=_longest_streak(days),
        total_completions=len(records),
        last_completed_date=_original_text(ordered[0][1]),
    )


__all__ = ["EMPTY_STREAK", "StreakData", "calculate_streak"]
