"""Builds services backed by the Django stores."""

from django.utils import timezone

from activities.conf import get_setting
from activities.services import ActivityService, AvailabilityResolver, EnrollmentService
from activities.signals import send_enrollment_transitioned
from activities.stores.django_store import (
    DjangoActivityStore,
    DjangoCapacityLedger,
    DjangoEnrollmentStore,
)


def get_enrollment_service() -> EnrollmentService:
    return EnrollmentService(
        DjangoActivityStore(),
        DjangoEnrollmentStore(),
        DjangoCapacityLedger(),
        clock=timezone.localtime,
        listeners=[send_enrollment_transitioned],
    )


def get_activity_service() -> ActivityService:
    return ActivityService(
        DjangoActivityStore(),
        enrollments=get_enrollment_service(),
        clock=timezone.localtime,
    )


def get_availability_resolver() -> AvailabilityResolver:
    return AvailabilityResolver(
        DjangoActivityStore(),
        DjangoEnrollmentStore(),
        DjangoCapacityLedger(),
        clock=timezone.localtime,
        horizon_days=get_setting("DISPLAY_HORIZON_DAYS"),
    )
