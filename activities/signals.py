"""Django signals for enrollment transitions.

``enrollment_transitioned`` is sent once per state change after the
surrounding transaction commits. Collaborators such as reminder delivery
or exports connect to it; nothing in this app depends on receivers.

Receivers get ``enrollment`` (domain Enrollment) and ``previous_state``
(EnrollmentState, or None for a new enrollment).
"""

import logging

from django.db import transaction
from django.dispatch import Signal, receiver

from activities.domain import Enrollment, EnrollmentState

logger = logging.getLogger(__name__)

enrollment_transitioned = Signal()


def send_enrollment_transitioned(
    enrollment: Enrollment, previous_state: EnrollmentState | None
) -> None:
    """Transition listener used by the services when wired to Django."""
    transaction.on_commit(
        lambda: enrollment_transitioned.send(
            sender=Enrollment,
            enrollment=enrollment,
            previous_state=previous_state,
        )
    )


@receiver(enrollment_transitioned)
def log_enrollment_transition(sender, enrollment, previous_state, **kwargs):
    logger.debug(
        "Enrollment %s (%s) %s -> %s",
        enrollment.id,
        enrollment.user_id,
        previous_state.value if previous_state else "new",
        enrollment.state.value,
    )
