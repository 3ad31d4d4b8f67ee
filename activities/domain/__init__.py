from activities.domain.catalog import ActivityFilter
from activities.domain.models import (
    Activity,
    ActivityKind,
    ActivityStatus,
    Caller,
    Enrollment,
    EnrollmentState,
    Frequency,
    Occurrence,
    OccurrenceAvailability,
    RecurrenceRule,
)
from activities.domain.value_objects import ActivityId, Capacity, EnrollmentId, OccurrenceKey

__all__ = [
    "ActivityFilter",
    "Activity",
    "ActivityKind",
    "ActivityStatus",
    "Caller",
    "Enrollment",
    "EnrollmentState",
    "Frequency",
    "Occurrence",
    "OccurrenceAvailability",
    "RecurrenceRule",
    "ActivityId",
    "EnrollmentId",
    "OccurrenceKey",
    "Capacity",
]
