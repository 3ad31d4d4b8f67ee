"""Activity service - saving and listing activities.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date, datetime, time
from uuid import uuid4

from activities.domain import (
    Activity,
    ActivityFilter,
    ActivityId,
    ActivityKind,
    ActivityStatus,
    Caller,
    Capacity,
    Enrollment,
    Frequency,
    Occurrence,
    RecurrenceRule,
)
from activities.domain.errors import ActivityValidationError
from activities.domain.recurrence import next_occurrence
from activities.services.enrollment_service import EnrollmentService
from activities.services.lookups import load_visible_activity, require_admin
from activities.stores.interfaces import ActivityStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivityInput:
    """Fields an admin supplies when creating or updating an activity."""

    title: str
    kind: ActivityKind
    status: ActivityStatus = ActivityStatus.DRAFT
    description: str = ""
    capacity: int | None = None
    requires_approval: bool = False
    location: str = ""
    duration_minutes: int | None = None
    categories: tuple[str, ...] = ()
    scheduled_date: date | None = None
    scheduled_time: time | None = None
    frequency: Frequency | None = None
    days_of_week: tuple[int, ...] = ()
    days_of_month: tuple[int, ...] = ()
    time_of_day: time | None = None
    start_date: date | None = None
    end_date: date | None = None
    occurrence_limit: int | None = None


@dataclass(frozen=True)
class ActivityListing:
    activity: Activity
    next_occurrence: Occurrence | None
    # The caller's earliest upcoming non-cancelled enrollment in this activity.
    caller_enrollment: Enrollment | None = None


class ActivityService:
    """Service for activity catalog operations."""

    def __init__(
        self,
        store: ActivityStore,
        enrollments: EnrollmentService | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._enrollments = enrollments
        self._clock = clock

    def list_activities(
        self,
        caller: Caller,
        filters: ActivityFilter | None = None,
        status: ActivityStatus | None = None,
    ) -> list[ActivityListing]:
        """Return visible activities, newest first, each with its next occurrence.

        ``status`` can only narrow what the caller may already see, so a
        participant asking for drafts gets an empty list.
        """
        statuses = {ActivityStatus.PUBLISHED}
        if caller.is_admin:
            statuses.add(ActivityStatus.DRAFT)
        if status is not None:
            statuses &= {status}
        if not statuses:
            return []

        now = self._clock()
        own = self._upcoming_enrollments(caller)
        return [
            ActivityListing(
                activity=a,
                next_occurrence=next_occurrence(a, now),
                caller_enrollment=own.get(a.id),
            )
            for a in self._store.list_activities(frozenset(statuses), filters)
        ]

    def get_activity(self, caller: Caller, activity_id: str) -> Activity:
        """Return an activity by ID.

        Raises:
            InvalidIdError: If the activity_id is not a valid UUID.
            ActivityNotFoundError: If the activity does not exist or is not visible.
        """
        return load_visible_activity(self._store, activity_id, caller)

    def create_activity(self, caller: Caller, data: ActivityInput) -> Activity:
        """Validate and store a new activity.

        Raises:
            AuthorizationError: If the caller is not an admin.
            ActivityValidationError: If the activity or its recurrence rule is malformed.
        """
        require_admin(caller)
        now = self._clock()
        activity = self._build(ActivityId(uuid4()), data, created_at=now, updated_at=now)
        self._store.save_activity(activity)
        logger.info(
            "Activity %s created by %s (%s)", activity.id, caller.user_id, activity.kind.value
        )
        return activity

    def update_activity(self, caller: Caller, activity_id: str, data: ActivityInput) -> Activity:
        """Replace an activity's fields.

        When the capacity grows (or becomes unlimited), waitlisted
        enrollments are promoted into the new slots.
        """
        require_admin(caller)
        existing = load_visible_activity(self._store, activity_id, caller)
        activity = self._build(
            existing.id, data, created_at=existing.created_at, updated_at=self._clock()
        )
        self._store.save_activity(activity)
        logger.info("Activity %s updated by %s", activity.id, caller.user_id)

        if self._enrollments is not None and _capacity_grew(existing, activity):
            promoted = self._enrollments.reconcile_waitlists(activity)
            if promoted:
                logger.info(
                    "Capacity change on %s promoted %d enrollments", activity.id, len(promoted)
                )
        return activity

    def delete_activity(self, caller: Caller, activity_id: str) -> Activity:
        """Soft-delete an activity. Its enrollments are kept."""
        require_admin(caller)
        existing = load_visible_activity(self._store, activity_id, caller)
        deleted = replace(existing, status=ActivityStatus.DELETED, updated_at=self._clock())
        self._store.save_activity(deleted)
        logger.info("Activity %s deleted by %s", deleted.id, caller.user_id)
        return deleted

    def _upcoming_enrollments(self, caller: Caller) -> dict[ActivityId, Enrollment]:
        if self._enrollments is None:
            return {}
        first: dict[ActivityId, Enrollment] = {}
        for enrollment in self._enrollments.list_my_enrollments(caller, upcoming=True):
            if enrollment.is_active:
                first.setdefault(enrollment.activity_id, enrollment)
        return first

    def _build(
        self,
        activity_id: ActivityId,
        data: ActivityInput,
        created_at: datetime,
        updated_at: datetime,
    ) -> Activity:
        if data.status is ActivityStatus.DELETED:
            raise ActivityValidationError("Activities are deleted through delete, not update")
        try:
            capacity = Capacity(data.capacity) if data.capacity is not None else None
            recurrence = _build_rule(data) if data.kind is ActivityKind.RECURRING else None
            return Activity(
                id=activity_id,
                title=data.title,
                description=data.description,
                kind=data.kind,
                status=data.status,
                requires_approval=data.requires_approval,
                capacity=capacity,
                scheduled_date=data.scheduled_date if data.kind is ActivityKind.SINGLE else None,
                scheduled_time=data.scheduled_time if data.kind is ActivityKind.SINGLE else None,
                recurrence=recurrence,
                location=data.location,
                duration_minutes=data.duration_minutes,
                categories=tuple(data.categories),
                created_at=created_at,
                updated_at=updated_at,
            )
        except ValueError as exc:
            logger.warning("Rejected activity %s: %s", activity_id, exc)
            raise ActivityValidationError(str(exc)) from exc


def _build_rule(data: ActivityInput) -> RecurrenceRule:
    if data.frequency is None:
        raise ValueError("Recurring activities require a frequency")
    if data.start_date is None:
        raise ValueError("Recurring activities require a start date")
    if data.time_of_day is None:
        raise ValueError("Recurring activities require a time of day")
    return RecurrenceRule(
        frequency=data.frequency,
        time_of_day=data.time_of_day,
        start_date=data.start_date,
        days_of_week=frozenset(data.days_of_week),
        days_of_month=frozenset(data.days_of_month),
        end_date=data.end_date,
        occurrence_limit=data.occurrence_limit,
    )


def _capacity_grew(before: Activity, after: Activity) -> bool:
    if after.capacity is None:
        return before.capacity is not None
    return before.capacity is not None and after.capacity.value > before.capacity.value
