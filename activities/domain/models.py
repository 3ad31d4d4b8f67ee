"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in activities/models.py (persistence layer).
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum

from activities.domain.value_objects import ActivityId, Capacity, EnrollmentId, OccurrenceKey


class ActivityKind(Enum):
    SINGLE = "single"
    RECURRING = "recurring"


class ActivityStatus(Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    DELETED = "deleted"


class Frequency(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class EnrollmentState(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    CANCELLED = "cancelled"
    WAITLISTED = "waitlisted"


@dataclass(frozen=True)
class RecurrenceRule:
    """Declarative pattern that generates the occurrences of a recurring activity.

    Weekdays use 0 = Sunday through 6 = Saturday.
    """

    frequency: Frequency
    time_of_day: time
    start_date: date
    days_of_week: frozenset[int] = field(default_factory=frozenset)
    days_of_month: frozenset[int] = field(default_factory=frozenset)
    end_date: date | None = None
    occurrence_limit: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "days_of_week", frozenset(self.days_of_week))
        object.__setattr__(self, "days_of_month", frozenset(self.days_of_month))

        if any(d < 0 or d > 6 for d in self.days_of_week):
            raise ValueError("Days of week must be between 0 and 6")
        if any(d < 1 or d > 31 for d in self.days_of_month):
            raise ValueError("Days of month must be between 1 and 31")
        if self.frequency is Frequency.WEEKLY and not self.days_of_week:
            raise ValueError("Weekly recurrence requires at least one day of the week")
        if self.frequency is Frequency.MONTHLY and not self.days_of_month:
            raise ValueError("Monthly recurrence requires at least one day of the month")
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("Recurrence end date cannot be before its start date")
        if self.occurrence_limit is not None and self.occurrence_limit < 1:
            raise ValueError("Occurrence limit must be a positive integer")


@dataclass(frozen=True)
class Activity:
    """Domain representation of an Activity."""

    id: ActivityId
    title: str
    kind: ActivityKind
    status: ActivityStatus
    requires_approval: bool
    created_at: datetime
    updated_at: datetime
    description: str = ""
    capacity: Capacity | None = None
    scheduled_date: date | None = None
    scheduled_time: time | None = None
    recurrence: RecurrenceRule | None = None
    location: str = ""
    duration_minutes: int | None = None
    categories: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.title.strip():
            raise ValueError("Activity title is required")
        if self.kind is ActivityKind.SINGLE and self.scheduled_date is None:
            raise ValueError("Single activities require a date")
        if self.kind is ActivityKind.RECURRING and self.recurrence is None:
            raise ValueError("Recurring activities require a recurrence rule")
        if self.duration_minutes is not None and self.duration_minutes < 0:
            raise ValueError("Duration cannot be negative")

    @property
    def time_of_day(self) -> time | None:
        if self.kind is ActivityKind.RECURRING:
            return self.recurrence.time_of_day
        return self.scheduled_time

    @property
    def is_deleted(self) -> bool:
        return self.status is ActivityStatus.DELETED


@dataclass(frozen=True)
class Occurrence:
    """One concrete date and time instance of an activity."""

    occurrence_date: date
    time_of_day: time | None


@dataclass(frozen=True)
class OccurrenceAvailability:
    """An occurrence annotated with capacity and the caller's own enrollment."""

    occurrence_date: date
    time_of_day: time | None
    slots_available: int | None
    has_capacity: bool
    caller_enrollment_state: EnrollmentState | None = None


@dataclass(frozen=True)
class Enrollment:
    """Domain representation of an Enrollment."""

    id: EnrollmentId
    activity_id: ActivityId
    user_id: str
    occurrence_date: date
    state: EnrollmentState
    created_at: datetime
    approved_at: datetime | None = None
    cancelled_at: datetime | None = None
    notes: str = ""

    @property
    def key(self) -> OccurrenceKey:
        return OccurrenceKey(self.activity_id, self.occurrence_date)

    @property
    def is_active(self) -> bool:
        return self.state is not EnrollmentState.CANCELLED


@dataclass(frozen=True)
class Caller:
    """Identity of the requester as supplied by the auth collaborator."""

    user_id: str
    is_admin: bool = False
    is_approved: bool = True
