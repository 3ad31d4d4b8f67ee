"""Pytest configuration and shared fixtures."""

from datetime import date, datetime, time, timedelta

import pytest
from rest_framework.test import APIClient

from activities.domain import ActivityKind, ActivityStatus, Caller, Frequency
from activities.services import (
    ActivityInput,
    ActivityService,
    AvailabilityResolver,
    EnrollmentService,
)
from activities.stores.memory import (
    InMemoryActivityStore,
    InMemoryCapacityLedger,
    InMemoryEnrollmentStore,
)

# A Sunday.
TODAY = date(2024, 1, 7)


class TickingClock:
    """Returns a later instant on every call so creation order is unambiguous."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current += self.step
        return now


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def participant_user(django_user_model):
    return django_user_model.objects.create_user(username="alice", password="secret")


@pytest.fixture
def second_participant_user(django_user_model):
    return django_user_model.objects.create_user(username="bob", password="secret")


@pytest.fixture
def staff_user(django_user_model):
    return django_user_model.objects.create_user(
        username="organiser", password="secret", is_staff=True
    )


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock(datetime.combine(TODAY, time(9, 0)))


@pytest.fixture
def activity_store() -> InMemoryActivityStore:
    return InMemoryActivityStore()


@pytest.fixture
def enrollment_store() -> InMemoryEnrollmentStore:
    return InMemoryEnrollmentStore()


@pytest.fixture
def ledger() -> InMemoryCapacityLedger:
    return InMemoryCapacityLedger()


@pytest.fixture
def transitions() -> list:
    """Every (enrollment, previous_state) pair the services report."""
    return []


@pytest.fixture
def enrollment_service(
    activity_store, enrollment_store, ledger, clock, transitions
) -> EnrollmentService:
    return EnrollmentService(
        activity_store,
        enrollment_store,
        ledger,
        clock=clock,
        listeners=[lambda enrollment, previous: transitions.append((enrollment, previous))],
    )


@pytest.fixture
def activity_service(activity_store, enrollment_service, clock) -> ActivityService:
    return ActivityService(activity_store, enrollments=enrollment_service, clock=clock)


@pytest.fixture
def availability(activity_store, enrollment_store, ledger, clock) -> AvailabilityResolver:
    return AvailabilityResolver(activity_store, enrollment_store, ledger, clock=clock)


@pytest.fixture
def admin() -> Caller:
    return Caller(user_id="admin", is_admin=True)


@pytest.fixture
def alice() -> Caller:
    return Caller(user_id="alice")


@pytest.fixture
def bob() -> Caller:
    return Caller(user_id="bob")


@pytest.fixture
def carol() -> Caller:
    return Caller(user_id="carol")


@pytest.fixture
def single_input():
    """Factory for a published single activity three days from today."""

    def build(**overrides) -> ActivityInput:
        fields = {
            "title": "Pottery workshop",
            "kind": ActivityKind.SINGLE,
            "status": ActivityStatus.PUBLISHED,
            "scheduled_date": TODAY + timedelta(days=3),
            "scheduled_time": time(18, 0),
        }
        fields.update(overrides)
        return ActivityInput(**fields)

    return build


@pytest.fixture
def weekly_input():
    """Factory for a published weekly activity starting today (Mondays and Wednesdays)."""

    def build(days=(1, 3), **overrides) -> ActivityInput:
        fields = {
            "title": "Evening yoga",
            "kind": ActivityKind.RECURRING,
            "status": ActivityStatus.PUBLISHED,
            "frequency": Frequency.WEEKLY,
            "days_of_week": tuple(days),
            "time_of_day": time(19, 30),
            "start_date": TODAY,
        }
        fields.update(overrides)
        return ActivityInput(**fields)

    return build
