"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date

from activities.domain import (
    Activity,
    ActivityFilter,
    ActivityId,
    ActivityStatus,
    Enrollment,
    EnrollmentId,
    EnrollmentState,
    OccurrenceKey,
)


class ActivityStore(ABC):
    """Interface for activity persistence operations."""

    @abstractmethod
    def get_activity(self, activity_id: ActivityId) -> Activity | None:
        """Return an activity by ID (deleted ones included), or None if not found."""
        ...

    @abstractmethod
    def save_activity(self, activity: Activity) -> Activity:
        """Insert or update an activity."""
        ...

    @abstractmethod
    def list_activities(
        self, statuses: frozenset[ActivityStatus], filters: ActivityFilter | None = None
    ) -> list[Activity]:
        """Return activities in any of ``statuses`` matching ``filters``, newest first."""
        ...


class EnrollmentStore(ABC):
    """Interface for enrollment persistence operations.

    Enrollments are never deleted; writes for one occurrence key are only
    issued while holding that key's ``CapacityLedger.occurrence_lock``.
    """

    @abstractmethod
    def get_enrollment(self, enrollment_id: EnrollmentId) -> Enrollment | None:
        """Return an enrollment by ID, or None if not found."""
        ...

    @abstractmethod
    def add_enrollment(self, enrollment: Enrollment) -> Enrollment:
        """Insert a new enrollment."""
        ...

    @abstractmethod
    def save_enrollment(self, enrollment: Enrollment) -> Enrollment:
        """Persist the state and timestamps of an existing enrollment."""
        ...

    @abstractmethod
    def find_active(self, user_id: str, key: OccurrenceKey) -> Enrollment | None:
        """Return the user's non-cancelled enrollment for the occurrence, if any."""
        ...

    @abstractmethod
    def oldest_waitlisted(
        self, key: OccurrenceKey, exclude: EnrollmentId | None = None
    ) -> Enrollment | None:
        """Return the waitlisted enrollment with the earliest created_at, skipping ``exclude``."""
        ...

    @abstractmethod
    def list_for_user(
        self,
        user_id: str,
        activity_id: ActivityId | None = None,
        state: EnrollmentState | None = None,
        since: date | None = None,
    ) -> list[Enrollment]:
        """Return a user's enrollments ordered by occurrence_date then created_at.

        ``since`` drops enrollments whose occurrence_date is earlier.
        """
        ...

    @abstractmethod
    def list_for_activity(
        self,
        activity_id: ActivityId,
        state: EnrollmentState | None = None,
        occurrence_date: date | None = None,
    ) -> list[Enrollment]:
        """Return an activity's enrollments ordered by occurrence_date then created_at."""
        ...

    @abstractmethod
    def list_enrollments(
        self,
        user_id: str | None = None,
        activity_id: ActivityId | None = None,
        state: EnrollmentState | None = None,
        occurrence_date: date | None = None,
    ) -> list[Enrollment]:
        """Return enrollments across all activities matching every given filter.

        Ordered by occurrence_date then created_at.
        """
        ...


class CapacityLedger(ABC):
    """Accepted-enrollment counter per occurrence key.

    ``reserve`` and ``release`` are individually atomic. ``occurrence_lock``
    serializes a whole read-decide-write sequence for one key and is
    re-entrant; different keys never block each other.
    """

    @abstractmethod
    def occurrence_lock(self, key: OccurrenceKey) -> AbstractContextManager:
        """Context manager holding exclusive access to ``key``."""
        ...

    @abstractmethod
    def accepted_count(self, key: OccurrenceKey) -> int:
        """Return the number of accepted enrollments for ``key``."""
        ...

    @abstractmethod
    def accepted_counts(self, activity_id: ActivityId, dates: list[date]) -> dict[date, int]:
        """Return accepted counts for many dates of one activity, without locking."""
        ...

    @abstractmethod
    def reserve(self, key: OccurrenceKey, capacity: int | None) -> bool:
        """Increment the count if it is below ``capacity`` (None = unlimited)."""
        ...

    @abstractmethod
    def force_reserve(self, key: OccurrenceKey) -> None:
        """Increment the count regardless of capacity."""
        ...

    @abstractmethod
    def release(self, key: OccurrenceKey) -> None:
        """Decrement the count; never below zero."""
        ...
