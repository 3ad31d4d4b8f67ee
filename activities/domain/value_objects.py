"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from datetime import date
from typing import Self
from uuid import UUID


@dataclass(frozen=True)
class ActivityId:
    """Unique identifier for an Activity."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class EnrollmentId:
    """Unique identifier for an Enrollment."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Capacity:
    """Positive integer representing the accepted-enrollment limit of one occurrence."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 1:
            raise ValueError("Capacity must be a positive integer")


@dataclass(frozen=True)
class OccurrenceKey:
    """Identifies one occurrence: an activity on a calendar date."""

    activity_id: ActivityId
    occurrence_date: date

    def __str__(self) -> str:
        return f"{self.activity_id}@{self.occurrence_date.isoformat()}"
