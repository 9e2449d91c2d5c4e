"""Validation of habit creation payloads."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..models.habit import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, HabitFrequency

TITLE_REQUIRED = "Title is required"
TITLE_TOO_LONG = f"Title must be less than {TITLE_MAX_LENGTH} characters"
DESCRIPTION_REQUIRED = "Description is required"
DESCRIPTION_TOO_LONG = f"Description must be less than {DESCRIPTION_MAX_LENGTH} characters"
FREQUENCY_INVALID = "Frequency must be daily, weekly, or monthly"
USER_ID_REQUIRED = "User ID is required"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a payload: the first violated rule, if any."""

    valid: bool
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


class HabitPayload(BaseModel):
    """Payload for creating a habit.

    Fields are declared in the order rules are checked, so the first reported
    error is the first rule violated.
    """

    model_config = ConfigDict(validate_default=True, populate_by_name=True)

    title: Any = Field(default=None, description="Short label for the habit")
    description: Any = Field(default=None, description="Details about the habit")
    frequency: Any = Field(default=None, description="Habit cadence")
    user_id: Any = Field(default=None, alias="user_ID", description="Owner of the habit")
    streak_count: Optional[int] = Field(default=0, ge=0)
    last_completed: Optional[datetime] = None

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError(TITLE_REQUIRED)
        if len(value) > TITLE_MAX_LENGTH:
            raise ValueError(TITLE_TOO_LONG)
        return value

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError(DESCRIPTION_REQUIRED)
        if len(value) > DESCRIPTION_MAX_LENGTH:
            raise ValueError(DESCRIPTION_TOO_LONG)
        return value

    @field_validator("frequency", mode="before")
    @classmethod
    def validate_frequency(cls, value: Any) -> str:
        if isinstance(value, HabitFrequency):
            return value.value
        if value not in [item.value for item in HabitFrequency]:
            raise ValueError(FREQUENCY_INVALID)
        return value

    @field_validator("user_id", mode="before")
    @classmethod
    def validate_user_id(cls, value: Any) -> str:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError(USER_ID_REQUIRED)
        return str(value)


def _first_error_message(exc: ValidationError) -> str:
    first = exc.errors(include_url=False)[0]
    original = first.get("ctx", {}).get("error")
    if original is not None:
        return str(original)
    field_name = first["loc"][0] if first.get("loc") else "payload"
    return f"{field_name}: {first.get('msg', 'Invalid value')}"


def parse_habit_payload(payload: Mapping[str, Any] | HabitPayload) -> HabitPayload:
    """Validate and return the payload model, raising ``ValidationError``."""

    if isinstance(payload, HabitPayload):
        payload = payload.model_dump(by_alias=True)
    if not isinstance(payload, Mapping):
        payload = {}
    return HabitPayload.model_validate(dict(payload))


def validate_habit_payload(payload: Mapping[str, Any] | HabitPayload) -> ValidationResult:
    """Check a habit payload, stopping at the first failed rule.

    Never raises for bad input; the failure comes back as a value.
    """

    try:
        parse_habit_payload(payload)
    except ValidationError as exc:
        return ValidationResult(valid=False, error=_first_error_message(exc))
    return ValidationResult(valid=True)


__all__ = [
    "DESCRIPTION_REQUIRED",
    "DESCRIPTION_TOO_LONG",
    "FREQUENCY_INVALID",
    "HabitPayload",
    "TITLE_REQUIRED",
    "TITLE_TOO_LONG",
    "USER_ID_REQUIRED",
    "ValidationResult",
    "parse_habit_payload",
    "validate_habit_payload",
]
