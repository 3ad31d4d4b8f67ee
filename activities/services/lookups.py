"""ID parsing, loading and visibility checks shared by the services."""

from activities.domain import Activity, ActivityId, ActivityStatus, Caller, Enrollment, EnrollmentId
from activities.domain.errors import (
    ActivityNotFoundError,
    AuthorizationError,
    EnrollmentNotFoundError,
    InvalidIdError,
)
from activities.stores.interfaces import ActivityStore, EnrollmentStore


def parse_activity_id(value: str) -> ActivityId:
    try:
        return ActivityId.from_string(value)
    except ValueError:
        raise InvalidIdError("activity") from None


def parse_enrollment_id(value: str) -> EnrollmentId:
    try:
        return EnrollmentId.from_string(value)
    except ValueError:
        raise InvalidIdError("enrollment") from None


def load_activity(store: ActivityStore, activity_id: str) -> Activity:
    """Return the activity, deleted ones included.

    Raises:
        InvalidIdError: If the activity_id is not a valid UUID.
        ActivityNotFoundError: If the activity does not exist.
    """
    activity = store.get_activity(parse_activity_id(activity_id))
    if activity is None:
        raise ActivityNotFoundError(activity_id)
    return activity


def load_visible_activity(store: ActivityStore, activity_id: str, caller: Caller) -> Activity:
    """Return the activity if the caller may see it.

    Participants only see published activities; admins also see drafts.
    Deleted activities are hidden from everyone.
    """
    activity = load_activity(store, activity_id)
    if activity.is_deleted:
        raise ActivityNotFoundError(activity_id)
    if activity.status is not ActivityStatus.PUBLISHED and not caller.is_admin:
        raise ActivityNotFoundError(activity_id)
    return activity


def load_enrollment(store: EnrollmentStore, enrollment_id: str) -> Enrollment:
    enrollment = store.get_enrollment(parse_enrollment_id(enrollment_id))
    if enrollment is None:
        raise EnrollmentNotFoundError(enrollment_id)
    return enrollment


def require_admin(caller: Caller) -> None:
    if not caller.is_admin:
        raise AuthorizationError("Administrator privileges required")


def require_owner_or_admin(caller: Caller, enrollment: Enrollment) -> None:
    if not caller.is_admin and enrollment.user_id != caller.user_id:
        raise AuthorizationError("Enrollment belongs to another user")
