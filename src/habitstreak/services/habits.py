"""Habit service helpers for completions, streak caches and rankings."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional

from ..domain.repositories import HabitRepository
from ..logging_config import get_logger
from ..models.completion import HabitCompletion
from ..models.habit import Habit
from .dates import parse_timestamp, start_of_day
from .streaks import StreakData, calculate_streak
from .validation import HabitPayload, validate_habit_payload

logger = get_logger(__name__)


class HabitNotFoundError(LookupError):
    """Raised when a habit id is unknown or belongs to another user."""

    def __init__(self, habit_id: str):
        super().__init__(f"Habit {habit_id} not found")
        self.habit_id = habit_id


class HabitValidationError(ValueError):
    """Raised when asked to persist a payload that fails validation."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def _require_habit(repo: HabitRepository, habit_id: str, user_id: str) -> Habit:
    habit = repo.get_by_id(habit_id, user_id=user_id)
    if habit is None:
        raise HabitNotFoundError(habit_id)
    return habit


def create_habit(
    repo: HabitRepository, payload: Mapping[str, Any], *, user_id: str
) -> Habit:
    """Validate a payload and store it as a new habit owned by ``user_id``."""

    data = {**dict(payload), "user_ID": user_id}
    data.pop("user_id", None)
    result = validate_habit_payload(data)
    if not result.valid:
        logger.info("Rejected habit payload", extra={"reason": result.error})
        raise HabitValidationError(result.error or "Invalid input")

    parsed = HabitPayload.model_validate(data)
    habit = Habit(
        title=parsed.title.strip(),
        description=parsed.description.strip(),
        frequency=parsed.frequency,
        streak_count=0,
        last_completed=None,
    )
    return repo.create(habit, user_id=user_id)


def complete_habit(
    repo: HabitRepository,
    habit_id: str,
    *,
    user_id: str,
    now: datetime | None = None,
) -> Optional[HabitCompletion]:
    """Record a completion for today and refresh the habit's streak cache.

    Returns None without writing anything when the habit already has a
    completion today.
    """

    habit = _require_habit(repo, habit_id, user_id)
    now = parse_timestamp(now) if now is not None else datetime.now()

    if habit_id in repo.completed_habit_ids_since(start_of_day(now), user_id=user_id):
        logger.debug("Habit already completed today", extra={"habit_id": habit_id})
        return None

    completion = repo.add_completion(
        HabitCompletion(habit_id=habit_id, user_id=user_id, completed_at=now),
        user_id=user_id,
    )

    history = repo.list_completions(user_id=user_id, habit_id=habit_id)
    streak = calculate_streak(history, today=now)
    habit.streak_count = streak.current_streak
    habit.last_completed = now
    repo.update(habit, user_id=user_id)
    return completion


def delete_habit(repo: HabitRepository, habit_id: str, *, user_id: str) -> None:
    """Delete a habit together with its completion history."""

    if not repo.delete(habit_id, user_id=user_id):
        raise HabitNotFoundError(habit_id)


def reconcile_habit(
    repo: HabitRepository,
    habit_id: str,
    *,
    user_id: str,
    today: date | datetime | None = None,
) -> Habit:
    """Rewrite ``streak_count`` and ``last_completed`` from completion history.

    The history wins whenever the cached fields disagree with it.
    """

    habit = _require_habit(repo, habit_id, user_id)
    streak = calculate_streak(
        repo.list_completions(user_id=user_id, habit_id=habit_id), today=today
    )
    last_completed = (
        parse_timestamp(streak.last_completed_date) if streak.last_completed_date else None
    )

    if habit.streak_count == streak.current_streak and habit.last_completed == last_completed:
        return habit

    logger.warning(
        "Streak cache drifted from history",
        extra={
            "habit_id": habit_id,
            "cached_streak": habit.streak_count,
            "derived_streak": streak.current_streak,
        },
    )
    habit.streak_count = streak.current_streak
    habit.last_completed = last_completed
    return repo.update(habit, user_id=user_id)


@dataclass(frozen=True)
class HabitStats:
    """A habit joined with the streak statistics derived from its history."""

    habit: Habit
    streak: StreakData

    @property
    def current_streak(self) -> int:
        return self.streak.current_streak

    @property
    def longest_streak(self) -> int:
        return self.streak.longest_streak

    @property
    def total_completions(self) -> int:
        return self.streak.total_completions


def habit_stats(
    habits: Iterable[Habit],
    completions: Iterable[Any],
    *,
    today: date | datetime | None = None,
) -> list[HabitStats]:
    """Pair each habit with streaks computed from its own completions."""

    by_habit: dict[str, list[Any]] = defaultdict(list)
    for completion in completions:
        habit_id = (
            completion.get("habit_ID", completion.get("habit_id"))
            if isinstance(completion, Mapping)
            else completion.habit_id
        )
        by_habit[habit_id].append(completion)

    return [
        HabitStats(habit=habit, streak=calculate_streak(by_habit.get(habit.id, []), today=today))
        for habit in habits
    ]


def rank_by_longest_streak(stats: Iterable[HabitStats]) -> list[HabitStats]:
    """Order habits by longest streak, best first; ties keep their order."""

    return sorted(stats, key=lambda item: item.longest_streak, reverse=True)


def top_performers(stats: Iterable[HabitStats], count: int = 3) -> list[HabitStats]:
    return rank_by_longest_streak(stats)[:count]


__all__ = [
    "HabitNotFoundError",
    "HabitStats",
    "HabitValidationError",
    "complete_habit",
    "create_habit",
    "delete_habit",
    "habit_stats",
    "rank_by_longest_streak",
    "reconcile_habit",
    "top_performers",
]
