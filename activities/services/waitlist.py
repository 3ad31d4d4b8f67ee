"""Waitlist promotion.

Callers must hold the occurrence lock for the key being promoted; the
promoter itself re-enters it so it is also safe to call on its own.
"""

import logging
from collections.abc import Callable, Iterable

from activities.domain import Activity, Enrollment, EnrollmentId, EnrollmentState, OccurrenceKey
from activities.domain.state_machine import initial_state, transition
from activities.stores.interfaces import CapacityLedger, EnrollmentStore

logger = logging.getLogger(__name__)

TransitionListener = Callable[[Enrollment, EnrollmentState | None], None]


def capacity_value(activity: Activity) -> int | None:
    return activity.capacity.value if activity.capacity is not None else None


def has_room(ledger: CapacityLedger, activity: Activity, key: OccurrenceKey) -> bool:
    capacity = capacity_value(activity)
    return capacity is None or ledger.accepted_count(key) < capacity


class WaitlistPromoter:
    """Moves waitlisted enrollments forward as slots free up, oldest first."""

    def __init__(
        self,
        enrollments: EnrollmentStore,
        ledger: CapacityLedger,
        clock: Callable,
        listeners: Iterable[TransitionListener] = (),
    ) -> None:
        self._enrollments = enrollments
        self._ledger = ledger
        self._clock = clock
        self._listeners = tuple(listeners)

    def promote(
        self,
        activity: Activity,
        key: OccurrenceKey,
        freed_slots: int = 1,
        exclude: EnrollmentId | None = None,
    ) -> list[Enrollment]:
        """Promote up to ``freed_slots`` waitlisted enrollments for ``key``.

        Each candidate goes through the same decision as a new enrollment:
        ``pending`` when the activity requires approval, otherwise
        ``accepted`` with a reserved slot. Stops early when the waitlist is
        empty or no slot can be had.
        """
        promoted: list[Enrollment] = []
        with self._ledger.occurrence_lock(key):
            for _ in range(freed_slots):
                candidate = self._enrollments.oldest_waitlisted(key, exclude=exclude)
                if candidate is None:
                    break
                if activity.requires_approval:
                    slot = has_room(self._ledger, activity, key)
                else:
                    slot = self._ledger.reserve(key, capacity_value(activity))
                if not slot:
                    break

                target = initial_state(activity.requires_approval, slot_available=True)
                updated = transition(candidate, target, self._clock())
                self._enrollments.save_enrollment(updated)
                promoted.append(updated)
                logger.info(
                    "Promoted enrollment %s for %s from waitlist to %s",
                    updated.id,
                    key,
                    target.value,
                )

        for enrollment in promoted:
            for listener in self._listeners:
                listener(enrollment, EnrollmentState.WAITLISTED)
        return promoted

    def fill_open_slots(self, activity: Activity, key: OccurrenceKey) -> list[Enrollment]:
        """Promote as many waitlisted enrollments as there are open slots now."""
        with self._ledger.occurrence_lock(key):
            capacity = capacity_value(activity)
            if capacity is None:
                waiting = self._enrollments.list_for_activity(
                    key.activity_id,
                    state=EnrollmentState.WAITLISTED,
                    occurrence_date=key.occurrence_date,
                )
                open_slots = len(waiting)
            else:
                open_slots = capacity - self._ledger.accepted_count(key)
            if open_slots <= 0:
                return []
            return self.promote(activity, key, freed_slots=open_slots)
