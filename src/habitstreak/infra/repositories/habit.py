"""SQLModel implementation of Habit repository."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from sqlmodel import Session, select

from ...domain.events import ChangeAction, ChangeEvent
from ...logging_config import get_logger
from ...models.completion import HabitCompletion
from ...models.habit import Habit
from ..events import ChangeFeed

logger = get_logger(__name__)

HABITS_COLLECTION = "habits"
COMPLETIONS_COLLECTION = "habit_completions"


class SQLModelHabitRepository:
    """SQLModel-based habit store.

    Every call is scoped by ``user_id``; rows owned by another user behave as
    if they did not exist. Mutations are announced on the optional change feed
    after they commit.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        feed: Optional[ChangeFeed] = None,
        *,
        habits_collection: str = HABITS_COLLECTION,
        completions_collection: str = COMPLETIONS_COLLECTION,
    ):
        """Initialize with a session factory and an optional change feed."""
        self.session_factory = session_factory
        self.feed = feed
        self.habits_collection = habits_collection
        self.completions_collection = completions_collection

    def _publish(self, action: ChangeAction, collection: str, document_id: str, payload: dict) -> None:
        if self.feed is None:
            return
        self.feed.publish(
            ChangeEvent(action=action, collection=collection, document_id=document_id, payload=payload)
        )

    def get_by_id(self, habit_id: str, *, user_id: str) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_by_owner(self, *, user_id: str) -> list[Habit]:
        """List all habits belonging to a user, oldest first."""
        with self.session_factory() as session:
            statement = (
                select(Habit)
                .where(Habit.user_id == user_id)
                .order_by(Habit.created_at, Habit.id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, habit: Habit, *, user_id: str) -> Habit:
        """Create a new habit."""
        with self.session_factory() as session:
            habit.user_id = user_id
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
        logger.info("Habit created", extra={"habit_id": habit.id, "user_id": user_id})
        self._publish(
            ChangeAction.CREATED, self.habits_collection, habit.id, habit.model_dump(mode="json")
        )
        return habit

    def update(self, habit: Habit, *, user_id: str) -> Habit:
        """Update an existing habit."""
        with self.session_factory() as session:
            existing = session.exec(
                select(Habit).where(Habit.id == habit.id, Habit.user_id == user_id)
            ).first()
            if existing is None:
                raise LookupError(f"Habit {habit.id} not found")
            for field_name in ("title", "description", "frequency", "streak_count", "last_completed"):
                setattr(existing, field_name, getattr(habit, field_name))
            session.add(existing)
            session.commit()
            session.refresh(existing)
            session.expunge(existing)
        logger.info(
            "Habit updated",
            extra={"habit_id": existing.id, "streak_count": existing.streak_count},
        )
        self._publish(
            ChangeAction.UPDATED, self.habits_collection, existing.id, existing.model_dump(mode="json")
        )
        return existing

    def delete(self, habit_id: str, *, user_id: str) -> bool:
        """Delete a habit by ID; its completions go with it."""
        with self.session_factory() as session:
            habit = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if habit is None:
                return False
            snapshot = habit.model_dump(mode="json")
            completions = session.exec(
                select(HabitCompletion).where(HabitCompletion.habit_id == habit_id)
            ).all()
            for completion in completions:
                session.delete(completion)
            session.delete(habit)
            session.commit()
        logger.info(
            "Habit deleted",
            extra={"habit_id": habit_id, "completions_removed": len(completions)},
        )
        self._publish(ChangeAction.DELETED, self.habits_collection, habit_id, snapshot)
        return True

    # Completion operations
    def add_completion(self, completion: HabitCompletion, *, user_id: str) -> HabitCompletion:
        """Append a completion event for a habit the user owns."""
        with self.session_factory() as session:
            owner_habit = session.exec(
                select(Habit.id).where(Habit.id == completion.habit_id, Habit.user_id == user_id)
            ).first()
            if owner_habit is None:
                raise LookupError(f"Habit {completion.habit_id} not found")
            completion.user_id = user_id
            session.add(completion)
            session.commit()
            session.refresh(completion)
            session.expunge(completion)
        logger.info(
            "Completion recorded",
            extra={"habit_id": completion.habit_id, "completed_at": completion.completed_at},
        )
        self._publish(
            ChangeAction.CREATED,
            self.completions_collection,
            completion.id,
            completion.model_dump(mode="json"),
        )
        return completion

    def list_completions(
        self,
        *,
        user_id: str,
        habit_id: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[HabitCompletion]:
        """List completions, most recent first."""
        with self.session_factory() as session:
            statement = select(HabitCompletion).where(HabitCompletion.user_id == user_id)
            if habit_id is not None:
                statement = statement.where(HabitCompletion.habit_id == habit_id)
            if since is not None:
                statement = statement.where(HabitCompletion.completed_at >= since)
            statement = statement.order_by(HabitCompletion.completed_at.desc())  # type: ignore
            if limit is not None:
                statement = statement.limit(limit)
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def completed_habit_ids_since(self, since: datetime, *, user_id: str) -> set[str]:
        """Return ids of habits with at least one completion at or after ``since``."""
        with self.session_factory() as session:
            statement = (
                select(HabitCompletion.habit_id)
                .where(HabitCompletion.user_id == user_id)
                .where(HabitCompletion.completed_at >= since)
            )
            return set(session.exec(statement).all())

    def completions_since(self, since: datetime, *, user_id: str) -> list[HabitCompletion]:
        """List completions at or after ``since``, most recent first."""
        return self.list_completions(user_id=user_id, since=since)
