"""Change notifications published by the habit store.

Events are tagged with an action and scoped to a collection. Subscribers
receive them on a channel named ``collections.<collection>.documents``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable


class ChangeAction(str, Enum):
    """Kinds of document change the store reports."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


def channel_for(collection: str) -> str:
    """Return the feed channel name for a collection."""

    return f"collections.{collection}.documents"


@dataclass(frozen=True)
class ChangeEvent:
    """A single create/update/delete notification for one document."""

    action: ChangeAction
    collection: str
    document_id: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def channel(self) -> str:
        return channel_for(self.collection)

    @property
    def name(self) -> str:
        """Fully qualified event name, e.g. ``collections.habits.documents.abc.created``."""

        return f"{self.channel}.{self.document_id}.{self.action.value}"


def _has_action(events: Iterable[ChangeEvent], action: ChangeAction) -> bool:
    return any(event.action is action for event in events)


def is_create_event(events: Iterable[ChangeEvent]) -> bool:
    return _has_action(events, ChangeAction.CREATED)


def is_update_event(events: Iterable[ChangeEvent]) -> bool:
    return _has_action(events, ChangeAction.UPDATED)


def is_delete_event(events: Iterable[ChangeEvent]) -> bool:
    return _has_action(events, ChangeAction.DELETED)


def has_change_event(events: Iterable[ChangeEvent]) -> bool:
    """Return True when any event is a create, update or delete."""

    events = list(events)
    return is_create_event(events) or is_update_event(events) or is_delete_event(events)


__all__ = [
    "ChangeAction",
    "ChangeEvent",
    "channel_for",
    "has_change_event",
    "is_create_event",
    "is_delete_event",
    "is_update_event",
]
