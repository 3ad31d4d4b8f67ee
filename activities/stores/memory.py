"""In-process stores backed by dicts.

Used by the service tests and by anything that wants the engine without a
database. Capacity decisions are serialized with one re-entrant lock per
occurrence key.
"""

from collections import defaultdict
from datetime import date
from threading import Lock, RLock

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
from activities.stores.interfaces import ActivityStore, CapacityLedger, EnrollmentStore


def _by_occurrence(enrollment: Enrollment) -> tuple:
    return (enrollment.occurrence_date, enrollment.created_at)


class InMemoryActivityStore(ActivityStore):
    def __init__(self) -> None:
        self._activities: dict[ActivityId, Activity] = {}

    def get_activity(self, activity_id: ActivityId) -> Activity | None:
        return self._activities.get(activity_id)

    def save_activity(self, activity: Activity) -> Activity:
        self._activities[activity.id] = activity
        return activity

    def list_activities(
        self, statuses: frozenset[ActivityStatus], filters: ActivityFilter | None = None
    ) -> list[Activity]:
        found = [
            a
            for a in self._activities.values()
            if a.status in statuses and (filters is None or filters.matches(a))
        ]
        return sorted(found, key=lambda a: a.created_at, reverse=True)


class InMemoryEnrollmentStore(EnrollmentStore):
    def __init__(self) -> None:
        # Insertion order breaks created_at ties.
        self._enrollments: dict[EnrollmentId, Enrollment] = {}

    def get_enrollment(self, enrollment_id: EnrollmentId) -> Enrollment | None:
        return self._enrollments.get(enrollment_id)

    def add_enrollment(self, enrollment: Enrollment) -> Enrollment:
        if enrollment.id in self._enrollments:
            raise ValueError(f"Enrollment {enrollment.id} already exists")
        self._enrollments[enrollment.id] = enrollment
        return enrollment

    def save_enrollment(self, enrollment: Enrollment) -> Enrollment:
        if enrollment.id not in self._enrollments:
            raise ValueError(f"Enrollment {enrollment.id} does not exist")
        self._enrollments[enrollment.id] = enrollment
        return enrollment

    def find_active(self, user_id: str, key: OccurrenceKey) -> Enrollment | None:
        for enrollment in list(self._enrollments.values()):
            if enrollment.user_id == user_id and enrollment.key == key and enrollment.is_active:
                return enrollment
        return None

    def oldest_waitlisted(
        self, key: OccurrenceKey, exclude: EnrollmentId | None = None
    ) -> Enrollment | None:
        waitlisted = [
            e
            for e in list(self._enrollments.values())
            if e.key == key and e.state is EnrollmentState.WAITLISTED and e.id != exclude
        ]
        if not waitlisted:
            return None
        return min(waitlisted, key=lambda e: e.created_at)

    def list_for_user(
        self,
        user_id: str,
        activity_id: ActivityId | None = None,
        state: EnrollmentState | None = None,
        since: date | None = None,
    ) -> list[Enrollment]:
        found = self.list_enrollments(user_id=user_id, activity_id=activity_id, state=state)
        if since is None:
            return found
        return [e for e in found if e.occurrence_date >= since]

    def list_for_activity(
        self,
        activity_id: ActivityId,
        state: EnrollmentState | None = None,
        occurrence_date: date | None = None,
    ) -> list[Enrollment]:
        return self.list_enrollments(
            activity_id=activity_id, state=state, occurrence_date=occurrence_date
        )

    def list_enrollments(
        self,
        user_id: str | None = None,
        activity_id: ActivityId | None = None,
        state: EnrollmentState | None = None,
        occurrence_date: date | None = None,
    ) -> list[Enrollment]:
        found = [
            e
            for e in list(self._enrollments.values())
            if (user_id is None or e.user_id == user_id)
            and (activity_id is None or e.activity_id == activity_id)
            and (state is None or e.state is state)
            and (occurrence_date is None or e.occurrence_date == occurrence_date)
        ]
        return sorted(found, key=_by_occurrence)


class InMemoryCapacityLedger(CapacityLedger):
    def __init__(self) -> None:
        self._counts: dict[OccurrenceKey, int] = defaultdict(int)
        self._locks: dict[OccurrenceKey, RLock] = {}
        self._locks_guard = Lock()

    def occurrence_lock(self, key: OccurrenceKey) -> RLock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = RLock()
        return lock

    def accepted_count(self, key: OccurrenceKey) -> int:
        return self._counts.get(key, 0)

    def accepted_counts(self, activity_id: ActivityId, dates: list[date]) -> dict[date, int]:
        return {day: self._counts.get(OccurrenceKey(activity_id, day), 0) for day in dates}

    def reserve(self, key: OccurrenceKey, capacity: int | None) -> bool:
        with self.occurrence_lock(key):
            if capacity is not None and self._counts[key] >= capacity:
                return False
            self._counts[key] += 1
            return True

    def force_reserve(self, key: OccurrenceKey) -> None:
        with self.occurrence_lock(key):
            self._counts[key] += 1

    def release(self, key: OccurrenceKey) -> None:
        with self.occurrence_lock(key):
            self._counts[key] = max(0, self._counts[key] - 1)
