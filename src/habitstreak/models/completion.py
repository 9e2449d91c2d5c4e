"""Completion records for habits."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, ClassVar

from pydantic import NaiveDatetime
from sqlalchemy import DateTime
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

from .habit import new_document_id

if TYPE_CHECKING:  # pragma: no cover
    from .habit import Habit


class HabitCompletion(SQLModel, table=True):
    """Immutable record that a habit was performed once.

    Timestamps are stored as naive local wall-clock time.
    """

    __tablename__: ClassVar[str] = "habit_completion"

    id: str = Field(default_factory=new_document_id, primary_key=True, max_length=64)
    habit_id: str = Field(foreign_key="habit.id", nullable=False, index=True, max_length=64)
    user_id: str = Field(nullable=False, index=True, max_length=64)
    completed_at: NaiveDatetime = Field(
        default_factory=datetime.now, nullable=False, index=True, sa_type=DateTime
    )

    habit: "Habit" = Relationship(
        back_populates="completions",
        sa_relationship=relationship("Habit", back_populates="completions"),
    )
