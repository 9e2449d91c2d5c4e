"""Tests for habit service orchestration: creation, completion and reconciliation."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from conftest import OTHER_USER_ID, TEST_USER_ID
from habitstreak.domain.events import ChangeAction
from habitstreak.services import habits as service
from habitstreak.services.validation import TITLE_TOO_LONG


@pytest.fixture
def payload() -> dict:
    return {"title": "  Meditate ", "description": " Ten quiet minutes ", "frequency": "daily"}


class TestCreateHabit:
    def test_creates_with_clean_cache(self, repo, payload):
        habit = service.create_habit(repo, payload, user_id=TEST_USER_ID)

        assert habit.title == "Meditate"
        assert habit.description == "Ten quiet minutes"
        assert habit.frequency == "daily"
        assert habit.streak_count == 0
        assert habit.last_completed is None
        assert repo.get_by_id(habit.id, user_id=TEST_USER_ID) is not None

    def test_injected_user_wins_over_payload(self, repo, payload):
        payload["user_ID"] = OTHER_USER_ID

        habit = service.create_habit(repo, payload, user_id=TEST_USER_ID)

        assert habit.user_id == TEST_USER_ID

    def test_invalid_payload_raises_with_first_message(self, repo, payload):
        payload["title"] = "x" * 101

        with pytest.raises(service.HabitValidationError) as excinfo:
            service.create_habit(repo, payload, user_id=TEST_USER_ID)

        assert excinfo.value.message == TITLE_TOO_LONG
        assert repo.list_by_owner(user_id=TEST_USER_ID) == []

    def test_missing_user_is_a_validation_error(self, repo, payload):
        with pytest.raises(service.HabitValidationError, match="User ID is required"):
            service.create_habit(repo, payload, user_id="")


class TestCompleteHabit:
    def test_first_completion_starts_streak(self, repo, habit_factory, now):
        habit = habit_factory()

        completion = service.complete_habit(repo, habit.id, user_id=TEST_USER_ID, now=now)

        assert completion is not None
        assert completion.completed_at == now
        stored = repo.get_by_id(habit.id, user_id=TEST_USER_ID)
        assert stored.streak_count == 1
        assert stored.last_completed == now

    def test_second_completion_same_day_is_ignored(self, repo, habit_factory, now):
        habit = habit_factory()
        service.complete_habit(repo, habit.id, user_id=TEST_USER_ID, now=now)

        again = service.complete_habit(
            repo, habit.id, user_id=TEST_USER_ID, now=now + timedelta(hours=3)
        )

        assert again is None
        assert len(repo.list_completions(user_id=TEST_USER_ID, habit_id=habit.id)) == 1
        assert repo.get_by_id(habit.id, user_id=TEST_USER_ID).streak_count == 1

    def test_consecutive_days_build_the_cached_streak(self, repo, habit_factory, now):
        habit = habit_factory()
        for days_ago in (2, 1, 0):
            service.complete_habit(
                repo, habit.id, user_id=TEST_USER_ID, now=now - timedelta(days=days_ago)
            )

        assert repo.get_by_id(habit.id, user_id=TEST_USER_ID).streak_count == 3

    def test_gap_resets_cached_streak(self, repo, habit_factory, now):
        habit = habit_factory()
        for days_ago in (6, 5, 0):
            service.complete_habit(
                repo, habit.id, user_id=TEST_USER_ID, now=now - timedelta(days=days_ago)
            )

        assert repo.get_by_id(habit.id, user_id=TEST_USER_ID).streak_count == 1

    def test_unknown_habit(self, repo, now):
        with pytest.raises(service.HabitNotFoundError):
            service.complete_habit(repo, "missing", user_id=TEST_USER_ID, now=now)

    def test_foreign_habit(self, repo, habit_factory, now):
        habit = habit_factory(user_id=OTHER_USER_ID)

        with pytest.raises(service.HabitNotFoundError):
            service.complete_habit(repo, habit.id, user_id=TEST_USER_ID, now=now)


class TestDeleteHabit:
    def test_delete(self, repo, habit_factory):
        habit = habit_factory()

        service.delete_habit(repo, habit.id, user_id=TEST_USER_ID)

        assert repo.get_by_id(habit.id, user_id=TEST_USER_ID) is None

    def test_delete_unknown(self, repo):
        with pytest.raises(service.HabitNotFoundError):
            service.delete_habit(repo, "missing", user_id=TEST_USER_ID)


class TestReconcileHabit:
    def test_stale_cache_is_rewritten_from_history(self, repo, habit_factory, completion_factory, now):
        habit = habit_factory(streak_count=10, last_completed=now - timedelta(days=20))
        completion_factory(habit, now, days_ago=1)
        completion_factory(habit, now)

        reconciled = service.reconcile_habit(repo, habit.id, user_id=TEST_USER_ID, today=now)

        assert reconciled.streak_count == 2
        assert reconciled.last_completed == now
        assert repo.get_by_id(habit.id, user_id=TEST_USER_ID).streak_count == 2

    def test_lapsed_history_zeroes_the_cache(self, repo, habit_factory, completion_factory, now):
        habit = habit_factory(streak_count=3)
        for days_ago in (5, 6, 7):
            completion_factory(habit, now, days_ago=days_ago)

        reconciled = service.reconcile_habit(repo, habit.id, user_id=TEST_USER_ID, today=now)

        assert reconciled.streak_count == 0
        assert reconciled.last_completed == now - timedelta(days=5)

    def test_empty_history(self, repo, habit_factory, now):
        habit = habit_factory(streak_count=4, last_completed=now)

        reconciled = service.reconcile_habit(repo, habit.id, user_id=TEST_USER_ID, today=now)

        assert reconciled.streak_count == 0
        assert reconciled.last_completed is None

    def test_consistent_cache_is_left_alone(self, repo, feed, habit_factory, completion_factory, now):
        habit = habit_factory(streak_count=1, last_completed=now)
        completion_factory(habit, now)

        with feed.subscribe(repo.habits_collection) as sub:
            service.reconcile_habit(repo, habit.id, user_id=TEST_USER_ID, today=now)
            assert [e for e in sub.drain() if e.action is ChangeAction.UPDATED] == []


class TestStatsAndRanking:
    def test_habit_stats_groups_completions_per_habit(self, habit_factory, now):
        read = habit_factory(title="Read")
        run = habit_factory(title="Run")
        completions = [
            {"habit_ID": read.id, "completed_at": (now - timedelta(days=d)).isoformat()}
            for d in range(4)
        ] + [{"habit_ID": run.id, "completed_at": now.isoformat()}]

        stats = service.habit_stats([read, run], completions, today=now)

        assert [s.habit.title for s in stats] == ["Read", "Run"]
        assert stats[0].current_streak == 4
        assert stats[1].total_completions == 1

    def test_habit_without_completions_has_empty_stats(self, habit_factory, now):
        stats = service.habit_stats([habit_factory()], [], today=now)

        assert stats[0].streak.as_payload()["totalCompletions"] == 0

    def test_rank_and_top_performers(self, habit_factory, now):
        habits = [habit_factory(title=t) for t in ("A", "B", "C", "D")]
        runs = {"A": 1, "B": 4, "C": 2, "D": 4}
        completions = [
            {"habit_id": h.id, "completed_at": now - timedelta(days=d)}
            for h in habits
            for d in range(runs[h.title])
        ]

        stats = service.habit_stats(habits, completions, today=now)

        assert [s.habit.title for s in service.rank_by_longest_streak(stats)] == ["B", "D", "C", "A"]
        assert [s.habit.title for s in service.top_performers(stats)] == ["B", "D", "C"]
