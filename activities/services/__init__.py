from activities.services.activity_service import ActivityInput, ActivityListing, ActivityService
from activities.services.availability import AvailabilityResolver
from activities.services.enrollment_service import (
    EnrollmentService,
    TransitionOutcome,
    TransitionResult,
)
from activities.services.waitlist import WaitlistPromoter

__all__ = [
    "ActivityInput",
    "ActivityListing",
    "ActivityService",
    "AvailabilityResolver",
    "EnrollmentService",
    "TransitionOutcome",
    "TransitionResult",
    "WaitlistPromoter",
]
