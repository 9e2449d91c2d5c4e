"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from sqlmodel import Session

from .config import BaseConfig
from .infra.database import bootstrap_database
from .infra.events import ChangeFeed
from .infra.repositories import SQLModelHabitRepository
from .services.dashboard import HabitDashboard


@dataclass
class AppContext:
    """Configuration, store and feed shared by the CLI and services."""

    config: BaseConfig
    session_factory: Callable[[], Session]
    habit_repo: SQLModelHabitRepository
    feed: ChangeFeed
    current_user_id: Optional[str] = None

    def require_user_id(self) -> str:
        """Return the current user id or raise if not set."""

        if not self.current_user_id:
            raise RuntimeError("No current user; pass --user or set HABITSTREAK_USER_ID")
        return self.current_user_id

    def dashboard(self) -> HabitDashboard:
        """Build a dashboard for the current user, subscribed to the feed."""

        return HabitDashboard(
            self.habit_repo,
            user_id=self.require_user_id(),
            feed=self.feed,
            habits_collection=self.config.HABITS_COLLECTION,
            completions_collection=self.config.COMPLETIONS_COLLECTION,
            completions_limit=self.config.COMPLETIONS_FETCH_LIMIT,
        )


def create_app_context(
    config: Optional[BaseConfig] = None, *, user_id: Optional[str] = None
) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    _, session_factory = bootstrap_database(config)

    feed = ChangeFeed()
    habit_repo = SQLModelHabitRepository(
        session_factory,
        feed,
        habits_collection=config.HABITS_COLLECTION,
        completions_collection=config.COMPLETIONS_COLLECTION,
    )

    return AppContext(
        config=config,
        session_factory=session_factory,
        habit_repo=habit_repo,
        feed=feed,
        current_user_id=user_id or config.USER_ID,
    )
