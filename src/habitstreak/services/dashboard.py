"""Per-user view of habits that refreshes itself from the change feed.

The dashboard holds snapshots fetched from the store and re-runs the pure
streak and frequency rules over them. It never computes anything from the
events themselves; an event only tells it which snapshot to refetch.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..domain.events import ChangeEvent, has_change_event, is_create_event
from ..domain.repositories import HabitRepository
from ..infra.events import ChangeFeed, Subscription
from ..logging_config import get_logger
from ..models.completion import HabitCompletion
from ..models.habit import Habit
from .dates import start_of_day
from .frequency import is_overdue
from .habits import HabitStats, habit_stats, rank_by_longest_streak, top_performers

logger = get_logger(__name__)


@dataclass(frozen=True)
class TodaySummary:
    """How many of the user's habits have a completion today."""

    completed: int
    total: int

    @property
    def label(self) -> str:
        return f"{self.completed} of {self.total} completed"


class HabitDashboard:
    """Snapshot of one user's habits and completions kept fresh by the feed."""

    def __init__(
        self,
        repo: HabitRepository,
        *,
        user_id: str,
        feed: Optional[ChangeFeed] = None,
        habits_collection: str = "habits",
        completions_collection: str = "habit_completions",
        completions_limit: int = 1000,
    ):
        if not user_id:
            raise ValueError("HabitDashboard needs the current user id")
        self.repo = repo
        self.user_id = user_id
        self.habits_collection = habits_collection
        self.completions_collection = completions_collection
        self.completions_limit = completions_limit

        self.habits: list[Habit] = []
        self.completions: list[HabitCompletion] = []
        self.completed_today: set[str] = set()

        self._habits_sub: Optional[Subscription] = None
        self._completions_sub: Optional[Subscription] = None
        if feed is not None:
            self._habits_sub = feed.subscribe(habits_collection)
            self._completions_sub = feed.subscribe(completions_collection)

    def load(self, *, now: datetime | None = None) -> "HabitDashboard":
        """Fetch fresh snapshots of habits and completions."""
        self.refresh_habits()
        self.refresh_completions(now=now)
        return self

    def refresh_habits(self) -> None:
        self.habits = self.repo.list_by_owner(user_id=self.user_id)
        logger.debug("Habits refreshed", extra={"count": len(self.habits)})

    def refresh_completions(self, *, now: datetime | None = None) -> None:
        self.completions = self.repo.list_completions(
            user_id=self.user_id, limit=self.completions_limit
        )
        self.completed_today = self.repo.completed_habit_ids_since(
            start_of_day(now), user_id=self.user_id
        )
        logger.debug("Completions refreshed", extra={"count": len(self.completions)})

    def handle(self, events: list[ChangeEvent], *, now: datetime | None = None) -> bool:
        """React to a batch of events; return True when a snapshot was refetched."""
        refreshed = False
        habit_events = [e for e in events if e.collection == self.habits_collection]
        completion_events = [e for e in events if e.collection == self.completions_collection]

        if has_change_event(habit_events):
            self.refresh_habits()
            refreshed = True
        # Completions are append-only, so only creations matter
        if is_create_event(completion_events):
            self.refresh_completions(now=now)
            refreshed = True
        return refreshed

    def process_pending(self, *, now: datetime | None = None) -> bool:
        """Drain both subscriptions and apply whatever arrived."""
        events: list[ChangeEvent] = []
        for subscription in (self._habits_sub, self._completions_sub):
            if subscription is not None:
                events.extend(subscription.drain())
        if not events:
            return False
        logger.debug("Processing feed events", extra={"events": [e.name for e in events]})
        return self.handle(events, now=now)

    def close(self) -> None:
        for subscription in (self._habits_sub, self._completions_sub):
            if subscription is not None:
                subscription.close()
        self._habits_sub = self._completions_sub = None

    def stats(self, *, today: datetime | None = None) -> list[HabitStats]:
        return habit_stats(self.habits, self.completions, today=today)

    def ranked(self, *, today: datetime | None = None) -> list[HabitStats]:
        return rank_by_longest_streak(self.stats(today=today))

    def top_performers(self, count: int = 3, *, today: datetime | None = None) -> list[HabitStats]:
        return top_performers(self.stats(today=today), count)

    def is_completed(self, habit_id: str) -> bool:
        return habit_id in self.completed_today

    def today_summary(self) -> TodaySummary:
        habit_ids = {habit.id for habit in self.habits}
        return TodaySummary(completed=len(self.completed_today & habit_ids), total=len(habit_ids))

    def overdue(self, *, now: datetime | None = None) -> list[Habit]:
        return [habit for habit in self.habits if is_overdue(habit, now=now)]
