"""SQLModel table exports."""

from .completion import HabitCompletion
from .habit import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    Habit,
    HabitFrequency,
    new_document_id,
)

__all__ = [
    "DESCRIPTION_MAX_LENGTH",
    "TITLE_MAX_LENGTH",
    "Habit",
    "HabitCompletion",
    "HabitFrequency",
    "new_document_id",
]
