"""Enrollment lifecycle rules.

Only ``accepted`` enrollments hold a slot in the capacity ledger. A
``cancelled`` enrollment is final; re-enrolling creates a new enrollment.
"""

from dataclasses import replace
from datetime import datetime

from activities.domain.errors import IllegalTransitionError
from activities.domain.models import Enrollment, EnrollmentState

PENDING = EnrollmentState.PENDING
ACCEPTED = EnrollmentState.ACCEPTED
CANCELLED = EnrollmentState.CANCELLED
WAITLISTED = EnrollmentState.WAITLISTED

TERMINAL_STATES = frozenset({CANCELLED})

# Transitions reachable without the admin override.
REGULAR_TRANSITIONS: dict[EnrollmentState, frozenset[EnrollmentState]] = {
    PENDING: frozenset({ACCEPTED, WAITLISTED, CANCELLED}),
    ACCEPTED: frozenset({CANCELLED}),
    WAITLISTED: frozenset({PENDING, ACCEPTED, CANCELLED}),
    CANCELLED: frozenset(),
}


def initial_state(requires_approval: bool, slot_available: bool) -> EnrollmentState:
    """State for a new (or promoted) enrollment given whether a slot is free."""
    if not slot_available:
        return WAITLISTED
    return PENDING if requires_approval else ACCEPTED


def consumes_capacity(state: EnrollmentState) -> bool:
    return state is ACCEPTED


def can_transition(
    current: EnrollmentState, target: EnrollmentState, override: bool = False
) -> bool:
    if current in TERMINAL_STATES or current is target:
        return False
    if override:
        return True
    return target in REGULAR_TRANSITIONS[current]


def transition(
    enrollment: Enrollment,
    target: EnrollmentState,
    at: datetime,
    override: bool = False,
) -> Enrollment:
    """Return ``enrollment`` moved to ``target``, stamping approval/cancellation times.

    Raises:
        IllegalTransitionError: If the move is not allowed from the current state.
    """
    if not can_transition(enrollment.state, target, override=override):
        raise IllegalTransitionError(enrollment.state.value, target.value)

    changes: dict = {"state": target}
    if target is ACCEPTED:
        changes["approved_at"] = at
    elif target is CANCELLED:
        changes["cancelled_at"] = at
    return replace(enrollment, **changes)
