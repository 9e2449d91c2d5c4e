"""Habit repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.completion import HabitCompletion
from ...models.habit import Habit


class HabitRepository(Protocol):
    """Repository for habits and their completion history, scoped per owner."""

    def get_by_id(self, habit_id: str, *, user_id: str) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def list_by_owner(self, *, user_id: str) -> list[Habit]:
        """List all habits belonging to a user."""
        ...

    def create(self, habit: Habit, *, user_id: str) -> Habit:
        """Create a new habit."""
        ...

    def update(self, habit: Habit, *, user_id: str) -> Habit:
        """Update an existing habit."""
        ...

    def delete(self, habit_id: str, *, user_id: str) -> bool:
        """Delete a habit and its completions."""
        ...

    # Completion operations
    def add_completion(self, completion: HabitCompletion, *, user_id: str) -> HabitCompletion:
        """Append a completion event."""
        ...

    def list_completions(
        self,
        *,
        user_id: str,
        habit_id: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[HabitCompletion]:
        """List completions, most recent first."""
        ...

    def completed_habit_ids_since(self, since: datetime, *, user_id: str) -> set[str]:
        """Return ids of habits with at least one completion at or after ``since``."""
        ...

    def completions_since(self, since: datetime, *, user_id: str) -> list[HabitCompletion]:
        """List completions at or after ``since``, most recent first."""
        ...
