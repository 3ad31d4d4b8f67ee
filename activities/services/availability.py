"""Occurrence availability read model.

Recomputed from the stores on every call; nothing is cached between
requests and no locks are taken, so a result may already be stale when the
caller acts on it. Enrollment itself re-checks capacity under the lock.
"""

from collections.abc import Callable
from datetime import datetime

from activities.domain import (
    Activity,
    ActivityKind,
    ActivityStatus,
    Caller,
    EnrollmentState,
    Occurrence,
    OccurrenceAvailability,
)
from activities.domain.errors import ActivityNotFoundError
from activities.domain.recurrence import DEFAULT_HORIZON_DAYS, display_window, expand
from activities.services.lookups import load_activity
from activities.services.waitlist import capacity_value
from activities.stores.interfaces import ActivityStore, CapacityLedger, EnrollmentStore


class AvailabilityResolver:
    """Builds the per-occurrence view a participant sees for one activity."""

    def __init__(
        self,
        activities: ActivityStore,
        enrollments: EnrollmentStore,
        ledger: CapacityLedger,
        clock: Callable[[], datetime] = datetime.now,
        horizon_days: int = DEFAULT_HORIZON_DAYS,
    ) -> None:
        self._activities = activities
        self._enrollments = enrollments
        self._ledger = ledger
        self._clock = clock
        self._horizon_days = horizon_days

    def occurrences(self, caller: Caller, activity_id: str) -> list[OccurrenceAvailability]:
        """Return the activity's occurrences in ascending date order.

        Deleted activities have no occurrences. Participants cannot see drafts.
        """
        activity = load_activity(self._activities, activity_id)
        if activity.is_deleted:
            return []
        if activity.status is not ActivityStatus.PUBLISHED and not caller.is_admin:
            raise ActivityNotFoundError(activity_id)

        occurrences = self._occurrences_of(activity)
        dates = [o.occurrence_date for o in occurrences]
        accepted = self._ledger.accepted_counts(activity.id, dates)
        own_states: dict = {
            e.occurrence_date: e.state
            for e in self._enrollments.list_for_user(caller.user_id, activity_id=activity.id)
            if e.is_active
        }
        capacity = capacity_value(activity)

        return [
            self._annotate(
                o,
                capacity,
                accepted.get(o.occurrence_date, 0),
                own_states.get(o.occurrence_date),
            )
            for o in occurrences
        ]

    def _occurrences_of(self, activity: Activity) -> list[Occurrence]:
        if activity.kind is ActivityKind.SINGLE:
            return [Occurrence(activity.scheduled_date, activity.scheduled_time)]
        start, end = display_window(self._clock(), self._horizon_days)
        return expand(activity.recurrence, start, end)

    @staticmethod
    def _annotate(
        occurrence: Occurrence,
        capacity: int | None,
        accepted_count: int,
        own_state: EnrollmentState | None,
    ) -> OccurrenceAvailability:
        slots = None if capacity is None else max(0, capacity - accepted_count)
        return OccurrenceAvailability(
            occurrence_date=occurrence.occurrence_date,
            time_of_day=occurrence.time_of_day,
            slots_available=slots,
            has_capacity=slots is None or slots > 0,
            caller_enrollment_state=own_state,
        )
