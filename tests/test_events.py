"""Tests for change events and the in-process feed."""

from __future__ import annotations

import pytest

from habitstreak.domain.events import (
    ChangeAction,
    ChangeEvent,
    channel_for,
    has_change_event,
    is_create_event,
    is_delete_event,
    is_update_event,
)
from habitstreak.infra.events import ChangeFeed


def event(action: ChangeAction, collection: str = "habits", doc: str = "doc-1") -> ChangeEvent:
    return ChangeEvent(action=action, collection=collection, document_id=doc)


def test_channel_and_name():
    created = event(ChangeAction.CREATED, doc="abc")

    assert channel_for("habits") == "collections.habits.documents"
    assert created.channel == "collections.habits.documents"
    assert created.name == "collections.habits.documents.abc.created"


def test_action_helpers():
    batch = [event(ChangeAction.UPDATED), event(ChangeAction.DELETED)]

    assert is_create_event(batch) is False
    assert is_update_event(batch) is True
    assert is_delete_event(batch) is True
    assert has_change_event(batch) is True
    assert has_change_event([]) is False


def test_has_change_event_accepts_generators():
    assert has_change_event(e for e in [event(ChangeAction.CREATED)]) is True


def test_feed_routes_by_collection():
    feed = ChangeFeed()
    habits = feed.subscribe("habits")
    completions = feed.subscribe("habit_completions")

    delivered = feed.publish(event(ChangeAction.CREATED, "habits"))

    assert delivered == 1
    assert [e.collection for e in habits.drain()] == ["habits"]
    assert completions.drain() == []


def test_subscription_to_several_collections():
    feed = ChangeFeed()
    sub = feed.subscribe("habits", "habit_completions")

    feed.publish(event(ChangeAction.CREATED, "habits"))
    feed.publish(event(ChangeAction.CREATED, "habit_completions"))
    feed.publish(event(ChangeAction.CREATED, "other"))

    assert sub.pending() == 2
    assert len(sub.drain()) == 2
    assert sub.pending() == 0


def test_get_times_out_with_none():
    sub = ChangeFeed().subscribe("habits")
    assert sub.get(timeout=0.01) is None


def test_get_returns_next_event():
    feed = ChangeFeed()
    sub = feed.subscribe("habits")
    published = event(ChangeAction.DELETED)
    feed.publish(published)

    assert sub.get(timeout=0.1) is published


def test_closed_subscription_receives_nothing():
    feed = ChangeFeed()
    with feed.subscribe("habits") as sub:
        assert feed.subscriber_count == 1

    assert feed.subscriber_count == 0
    assert feed.publish(event(ChangeAction.CREATED)) == 0
    assert sub.drain() == []


def test_subscribe_requires_a_collection():
    with pytest.raises(ValueError):
        ChangeFeed().subscribe()
