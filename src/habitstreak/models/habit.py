"""Habit tracking data structures."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Optional
from uuid import uuid4

from pydantic import NaiveDatetime
from sqlalchemy import DateTime
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .completion import HabitCompletion

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500


def new_document_id() -> str:
    """Return an opaque document identifier."""

    return uuid4().hex


class HabitFrequency(str, Enum):
    """Supported cadence options for habits."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Habit(SQLModel, table=True):
    """A user-defined recurring activity with a target frequency.

    ``streak_count`` and ``last_completed`` are a cache maintained on each
    completion; completion history is the source of truth for streaks.
    """

    __tablename__: ClassVar[str] = "habit"

    id: str = Field(default_factory=new_document_id, primary_key=True, max_length=64)
    user_id: str = Field(nullable=False, index=True, max_length=64)
    title: str = Field(nullable=False, max_length=TITLE_MAX_LENGTH)
    description: str = Field(nullable=False, max_length=DESCRIPTION_MAX_LENGTH)
    frequency: str = Field(default=HabitFrequency.DAILY.value, max_length=16)
    streak_count: int = Field(default=0, nullable=False, ge=0)
    # Naive local wall-clock time
    last_completed: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime)
    created_at: NaiveDatetime = Field(
        default_factory=datetime.now, nullable=False, index=True, sa_type=DateTime
    )

    completions: list["HabitCompletion"] = Relationship(
        back_populates="habit",
        sa_relationship=relationship(
            "HabitCompletion", back_populates="habit", cascade="all, delete-orphan"
        ),
    )
