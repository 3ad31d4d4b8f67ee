"""Enrollment service - the enrollment lifecycle lives here.

Every mutation for an occurrence runs under that occurrence's ledger lock:
the duplicate check, the capacity decision, the write and any waitlist
promotion it triggers happen as one step.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from uuid import uuid4

from activities.domain import (
    Activity,
    ActivityKind,
    ActivityStatus,
    Caller,
    Enrollment,
    EnrollmentId,
    EnrollmentState,
    OccurrenceKey,
)
from activities.domain.errors import (
    ActivityNotFoundError,
    ActivityNotOpenError,
    AuthorizationError,
    DuplicateEnrollmentError,
    IllegalTransitionError,
    OccurrenceDateRequiredError,
    OccurrenceNotFoundError,
)
from activities.domain.recurrence import display_window, occurs_on
from activities.domain.state_machine import (
    ACCEPTED,
    CANCELLED,
    PENDING,
    WAITLISTED,
    initial_state,
    transition,
)
from activities.services.lookups import (
    load_activity,
    load_enrollment,
    parse_activity_id,
    require_admin,
    require_owner_or_admin,
)
from activities.services.waitlist import (
    TransitionListener,
    WaitlistPromoter,
    capacity_value,
    has_room,
)
from activities.stores.interfaces import ActivityStore, CapacityLedger, EnrollmentStore

logger = logging.getLogger(__name__)


class TransitionOutcome(Enum):
    OK = "ok"
    CAPACITY_CONFLICT = "capacity_conflict"


@dataclass(frozen=True)
class TransitionResult:
    """What an enrollment operation did.

    ``CAPACITY_CONFLICT`` means the requested move was downgraded to
    ``waitlisted`` because the occurrence was full.
    """

    enrollment: Enrollment
    outcome: TransitionOutcome = TransitionOutcome.OK
    promoted: tuple[Enrollment, ...] = ()


class EnrollmentService:
    """Service for enrollment operations."""

    def __init__(
        self,
        activities: ActivityStore,
        enrollments: EnrollmentStore,
        ledger: CapacityLedger,
        clock: Callable[[], datetime] = datetime.now,
        listeners: Iterable[TransitionListener] = (),
    ) -> None:
        self._activities = activities
        self._enrollments = enrollments
        self._ledger = ledger
        self._clock = clock
        self._listeners = tuple(listeners)
        self.promoter = WaitlistPromoter(enrollments, ledger, clock, self._listeners)

    def enroll(
        self,
        caller: Caller,
        activity_id: str,
        occurrence_date: date | None = None,
        notes: str = "",
        user_id: str | None = None,
    ) -> TransitionResult:
        """Create an enrollment for one occurrence.

        Admins may enroll another user by passing ``user_id``.

        Raises:
            AuthorizationError: If the caller is not an approved participant, or
                names another user without being an admin.
            ActivityNotFoundError: If the activity does not exist or is deleted.
            ActivityNotOpenError: If a participant enrolls in a draft.
            OccurrenceDateRequiredError: If a recurring activity gets no date.
            OccurrenceNotFoundError: If the activity does not occur on the date.
            DuplicateEnrollmentError: If an active enrollment already exists.
        """
        if not caller.is_admin and not caller.is_approved:
            raise AuthorizationError("Participant account is not approved")
        if user_id is not None and user_id != caller.user_id:
            require_admin(caller)
        participant = user_id or caller.user_id

        activity = load_activity(self._activities, activity_id)
        if activity.is_deleted:
            raise ActivityNotFoundError(activity_id)
        if activity.status is not ActivityStatus.PUBLISHED and not caller.is_admin:
            raise ActivityNotOpenError(activity.status.value)

        day = self._resolve_occurrence(activity, occurrence_date)
        key = OccurrenceKey(activity.id, day)

        with self._ledger.occurrence_lock(key):
            existing = self._enrollments.find_active(participant, key)
            if existing is not None:
                logger.warning(
                    "Rejected duplicate enrollment of user %s for %s (existing %s is %s)",
                    participant,
                    key,
                    existing.id,
                    existing.state.value,
                )
                raise DuplicateEnrollmentError(str(existing.id), existing.state.value)

            if activity.requires_approval:
                slot = has_room(self._ledger, activity, key)
            else:
                slot = self._ledger.reserve(key, capacity_value(activity))
            state = initial_state(activity.requires_approval, slot)

            now = self._clock()
            enrollment = Enrollment(
                id=EnrollmentId(uuid4()),
                activity_id=activity.id,
                user_id=participant,
                occurrence_date=day,
                state=state,
                created_at=now,
                approved_at=now if state is ACCEPTED else None,
                notes=notes,
            )
            self._enrollments.add_enrollment(enrollment)

        logger.info(
            "Created enrollment %s for user %s on %s as %s",
            enrollment.id,
            participant,
            key,
            state.value,
        )
        self._notify(enrollment, None)
        outcome = TransitionOutcome.OK
        if state is WAITLISTED:
            outcome = TransitionOutcome.CAPACITY_CONFLICT
        return TransitionResult(enrollment=enrollment, outcome=outcome)

    def approve(self, caller: Caller, enrollment_id: str) -> TransitionResult:
        """Move a pending enrollment to accepted, or to waitlisted if the occurrence is full."""
        require_admin(caller)
        found = load_enrollment(self._enrollments, enrollment_id)
        activity = self._activity_of(found)

        with self._ledger.occurrence_lock(found.key):
            current = self._reload(found)
            if current.state is not PENDING:
                raise IllegalTransitionError(current.state.value, ACCEPTED.value)
            if self._ledger.reserve(current.key, capacity_value(activity)):
                updated = transition(current, ACCEPTED, self._clock())
                outcome = TransitionOutcome.OK
            else:
                updated = transition(current, WAITLISTED, self._clock())
                outcome = TransitionOutcome.CAPACITY_CONFLICT
                logger.info(
                    "Enrollment %s could not be approved: %s is full", current.id, current.key
                )
            self._enrollments.save_enrollment(updated)

        self._log_transition(current, updated)
        self._notify(updated, current.state)
        return TransitionResult(enrollment=updated, outcome=outcome)

    def reject(self, caller: Caller, enrollment_id: str) -> TransitionResult:
        """Cancel a pending enrollment on behalf of an admin."""
        require_admin(caller)
        found = load_enrollment(self._enrollments, enrollment_id)

        with self._ledger.occurrence_lock(found.key):
            current = self._reload(found)
            if current.state is not PENDING:
                raise IllegalTransitionError(current.state.value, CANCELLED.value)
            updated = transition(current, CANCELLED, self._clock())
            self._enrollments.save_enrollment(updated)

        self._log_transition(current, updated)
        self._notify(updated, current.state)
        return TransitionResult(enrollment=updated)

    def cancel(self, caller: Caller, enrollment_id: str) -> TransitionResult:
        """Cancel an enrollment; the owner or an admin may do this.

        Cancelling an accepted enrollment frees its slot, which is handed to
        the oldest waitlisted enrollment for the same occurrence.
        """
        found = load_enrollment(self._enrollments, enrollment_id)
        require_owner_or_admin(caller, found)
        activity = self._activity_of(found)

        with self._ledger.occurrence_lock(found.key):
            current = self._reload(found)
            updated = transition(current, CANCELLED, self._clock())
            self._enrollments.save_enrollment(updated)
            promoted = self._release_if_accepted(activity, current)

        self._log_transition(current, updated)
        self._notify(updated, current.state)
        return TransitionResult(enrollment=updated, promoted=tuple(promoted))

    def set_state(
        self, caller: Caller, enrollment_id: str, target: EnrollmentState
    ) -> TransitionResult:
        """Admin override: move a non-cancelled enrollment to any other state.

        Capacity is not checked, but the ledger still follows the change.
        Setting the current state again is a no-op.
        """
        require_admin(caller)
        found = load_enrollment(self._enrollments, enrollment_id)
        activity = self._activity_of(found)

        with self._ledger.occurrence_lock(found.key):
            current = self._reload(found)
            if current.state is CANCELLED:
                raise IllegalTransitionError(current.state.value, target.value)
            if current.state is target:
                return TransitionResult(enrollment=current)

            updated = transition(current, target, self._clock(), override=True)
            self._enrollments.save_enrollment(updated)
            if target is ACCEPTED:
                self._ledger.force_reserve(current.key)
            promoted = self._release_if_accepted(activity, current, exclude=current.id)

        logger.info(
            "Admin %s overrode enrollment %s: %s -> %s",
            caller.user_id,
            updated.id,
            current.state.value,
            target.value,
        )
        self._notify(updated, current.state)
        return TransitionResult(enrollment=updated, promoted=tuple(promoted))

    def get_enrollment(self, caller: Caller, enrollment_id: str) -> Enrollment:
        enrollment = load_enrollment(self._enrollments, enrollment_id)
        require_owner_or_admin(caller, enrollment)
        return enrollment

    def list_my_enrollments(
        self, caller: Caller, state: EnrollmentState | None = None, upcoming: bool = False
    ) -> list[Enrollment]:
        """Return the caller's enrollments.

        With ``upcoming``, occurrences before yesterday (local time) are left out.
        """
        since = display_window(self._clock())[0] if upcoming else None
        return self._enrollments.list_for_user(caller.user_id, state=state, since=since)

    def list_enrollments(
        self,
        caller: Caller,
        user_id: str | None = None,
        activity_id: str | None = None,
        state: EnrollmentState | None = None,
        occurrence_date: date | None = None,
    ) -> list[Enrollment]:
        """Admin listing across all activities; every filter is optional.

        An unknown activity ID gives an empty list, a malformed one InvalidIdError.
        """
        require_admin(caller)
        return self._enrollments.list_enrollments(
            user_id=user_id,
            activity_id=parse_activity_id(activity_id) if activity_id else None,
            state=state,
            occurrence_date=occurrence_date,
        )

    def list_activity_enrollments(
        self,
        caller: Caller,
        activity_id: str,
        state: EnrollmentState | None = None,
        occurrence_date: date | None = None,
    ) -> list[Enrollment]:
        """Return the roster of an activity, optionally narrowed by state and date."""
        require_admin(caller)
        activity = load_activity(self._activities, activity_id)
        return self._enrollments.list_for_activity(
            activity.id, state=state, occurrence_date=occurrence_date
        )

    def reconcile_waitlists(self, activity: Activity) -> list[Enrollment]:
        """Promote waitlisted enrollments into any slots opened by a capacity change."""
        waiting = self._enrollments.list_for_activity(activity.id, state=WAITLISTED)
        promoted: list[Enrollment] = []
        for day in sorted({e.occurrence_date for e in waiting}):
            key = OccurrenceKey(activity.id, day)
            promoted.extend(self.promoter.fill_open_slots(activity, key))
        return promoted

    def _resolve_occurrence(self, activity: Activity, occurrence_date: date | None) -> date:
        activity_id = str(activity.id)
        if activity.kind is ActivityKind.SINGLE:
            if occurrence_date is None:
                return activity.scheduled_date
            if occurrence_date != activity.scheduled_date:
                raise OccurrenceNotFoundError(activity_id, occurrence_date)
            return occurrence_date

        if occurrence_date is None:
            raise OccurrenceDateRequiredError()
        if not occurs_on(activity.recurrence, occurrence_date):
            raise OccurrenceNotFoundError(activity_id, occurrence_date)
        return occurrence_date

    def _release_if_accepted(
        self, activity: Activity, previous: Enrollment, exclude: EnrollmentId | None = None
    ) -> list[Enrollment]:
        if previous.state is not ACCEPTED:
            return []
        self._ledger.release(previous.key)
        return self.promoter.promote(activity, previous.key, freed_slots=1, exclude=exclude)

    def _activity_of(self, enrollment: Enrollment) -> Activity:
        activity = self._activities.get_activity(enrollment.activity_id)
        if activity is None:
            raise ActivityNotFoundError(str(enrollment.activity_id))
        return activity

    def _reload(self, enrollment: Enrollment) -> Enrollment:
        # State may have moved between the lookup and taking the lock.
        current = self._enrollments.get_enrollment(enrollment.id)
        return current if current is not None else enrollment

    def _log_transition(self, before: Enrollment, after: Enrollment) -> None:
        logger.info(
            "Enrollment %s on %s: %s -> %s",
            after.id,
            after.key,
            before.state.value,
            after.state.value,
        )

    def _notify(self, enrollment: Enrollment, previous: EnrollmentState | None) -> None:
        for listener in self._listeners:
            listener(enrollment, previous)
