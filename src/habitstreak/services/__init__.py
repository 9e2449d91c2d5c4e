"""Service module exports."""

from . import dashboard, dates, frequency, habits, streaks, validation
from .frequency import is_completed_today, is_overdue
from .streaks import StreakData, calculate_streak
from .validation import ValidationResult, validate_habit_payload

__all__ = [
    "StreakData",
    "ValidationResult",
    "calculate_streak",
    "dashboard",
    "dates",
    "frequency",
    "habits",
    "is_completed_today",
    "is_overdue",
    "streaks",
    "validate_habit_payload",
    "validation",
]
