"""Django ORM implementation of the activity, enrollment and ledger stores."""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date

from django.db import IntegrityError, transaction
from django.db.models import F, Q, QuerySet

from activities import models
from activities.domain import (
    Activity,
    ActivityFilter,
    ActivityId,
    ActivityKind,
    ActivityStatus,
    Capacity,
    Enrollment,
    EnrollmentId,
    EnrollmentState,
    Frequency,
    OccurrenceKey,
    RecurrenceRule,
)
from activities.domain.errors import DuplicateEnrollmentError
from activities.stores.interfaces import ActivityStore, CapacityLedger, EnrollmentStore


def _activity_to_domain(row: models.Activity) -> Activity:
    recurrence = None
    if row.kind == models.Activity.Kind.RECURRING:
        recurrence = RecurrenceRule(
            frequency=Frequency(row.frequency),
            time_of_day=row.time_of_day,
            start_date=row.start_date,
            days_of_week=frozenset(row.days_of_week or ()),
            days_of_month=frozenset(row.days_of_month or ()),
            end_date=row.end_date,
            occurrence_limit=row.occurrence_limit,
        )
    return Activity(
        id=ActivityId(row.id),
        title=row.title,
        description=row.description,
        kind=ActivityKind(row.kind),
        status=ActivityStatus(row.status),
        requires_approval=row.requires_approval,
        capacity=Capacity(row.capacity) if row.capacity is not None else None,
        scheduled_date=row.scheduled_date,
        scheduled_time=row.scheduled_time,
        recurrence=recurrence,
        location=row.location,
        duration_minutes=row.duration_minutes,
        categories=tuple(row.categories or ()),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _activity_fields(activity: Activity) -> dict:
    rule = activity.recurrence
    return {
        "title": activity.title,
        "description": activity.description,
        "kind": activity.kind.value,
        "status": activity.status.value,
        "requires_approval": activity.requires_approval,
        "capacity": activity.capacity.value if activity.capacity else None,
        "location": activity.location,
        "duration_minutes": activity.duration_minutes,
        "categories": list(activity.categories),
        "scheduled_date": activity.scheduled_date,
        "scheduled_time": activity.scheduled_time,
        "frequency": rule.frequency.value if rule else "",
        "days_of_week": sorted(rule.days_of_week) if rule else [],
        "days_of_month": sorted(rule.days_of_month) if rule else [],
        "time_of_day": rule.time_of_day if rule else None,
        "start_date": rule.start_date if rule else None,
        "end_date": rule.end_date if rule else None,
        "occurrence_limit": rule.occurrence_limit if rule else None,
        "created_at": activity.created_at,
        "updated_at": activity.updated_at,
    }


def _enrollment_to_domain(row: models.Enrollment) -> Enrollment:
    return Enrollment(
        id=EnrollmentId(row.id),
        activity_id=ActivityId(row.activity_id),
        user_id=row.user_id,
        occurrence_date=row.occurrence_date,
        state=EnrollmentState(row.state),
        created_at=row.created_at,
        approved_at=row.approved_at,
        cancelled_at=row.cancelled_at,
        notes=row.notes,
    )


def _enrollment_rows(
    user_id: str | None = None,
    activity_id: ActivityId | None = None,
    state: EnrollmentState | None = None,
    occurrence_date: date | None = None,
) -> QuerySet:
    rows = models.Enrollment.objects.all()
    if user_id is not None:
        rows = rows.filter(user_id=user_id)
    if activity_id is not None:
        rows = rows.filter(activity_id=activity_id.value)
    if state is not None:
        rows = rows.filter(state=state.value)
    if occurrence_date is not None:
        rows = rows.filter(occurrence_date=occurrence_date)
    return rows.order_by("occurrence_date", "created_at")


class DjangoActivityStore(ActivityStore):
    """Relational activity store using Django ORM."""

    def get_activity(self, activity_id: ActivityId) -> Activity | None:
        row = models.Activity.objects.filter(pk=activity_id.value).first()
        return _activity_to_domain(row) if row else None

    def save_activity(self, activity: Activity) -> Activity:
        models.Activity.objects.update_or_create(
            pk=activity.id.value, defaults=_activity_fields(activity)
        )
        return activity

    def list_activities(
        self, statuses: frozenset[ActivityStatus], filters: ActivityFilter | None = None
    ) -> list[Activity]:
        rows = models.Activity.objects.filter(status__in=[s.value for s in statuses])
        search = filters.search.strip() if filters else ""
        if search:
            rows = rows.filter(
                Q(title__icontains=search)
                | Q(description__icontains=search)
                | Q(location__icontains=search)
            )
        activities = [_activity_to_domain(row) for row in rows.order_by("-created_at")]
        if filters is None:
            return activities
        # JSON containment and recurrence expansion are not portable SQL.
        return [
            a for a in activities if filters.matches_category(a) and filters.matches_period(a)
        ]


class DjangoEnrollmentStore(EnrollmentStore):
    """Relational enrollment store using Django ORM."""

    def get_enrollment(self, enrollment_id: EnrollmentId) -> Enrollment | None:
        row = models.Enrollment.objects.filter(pk=enrollment_id.value).first()
        return _enrollment_to_domain(row) if row else None

    def add_enrollment(self, enrollment: Enrollment) -> Enrollment:
        try:
            with transaction.atomic():
                models.Enrollment.objects.create(
                    id=enrollment.id.value,
                    activity_id=enrollment.activity_id.value,
                    user_id=enrollment.user_id,
                    occurrence_date=enrollment.occurrence_date,
                    state=enrollment.state.value,
                    notes=enrollment.notes,
                    created_at=enrollment.created_at,
                    approved_at=enrollment.approved_at,
                    cancelled_at=enrollment.cancelled_at,
                )
        except IntegrityError:
            existing = self.find_active(enrollment.user_id, enrollment.key)
            if existing is None:
                raise
            raise DuplicateEnrollmentError(str(existing.id), existing.state.value)
        return enrollment

    def save_enrollment(self, enrollment: Enrollment) -> Enrollment:
        updated = models.Enrollment.objects.filter(pk=enrollment.id.value).update(
            state=enrollment.state.value,
            notes=enrollment.notes,
            approved_at=enrollment.approved_at,
            cancelled_at=enrollment.cancelled_at,
        )
        if updated != 1:
            raise ValueError(f"Enrollment {enrollment.id} does not exist")
        return enrollment

    def find_active(self, user_id: str, key: OccurrenceKey) -> Enrollment | None:
        row = (
            models.Enrollment.objects.filter(
                user_id=user_id,
                activity_id=key.activity_id.value,
                occurrence_date=key.occurrence_date,
            )
            .exclude(state=models.Enrollment.State.CANCELLED)
            .first()
        )
        return _enrollment_to_domain(row) if row else None

    def oldest_waitlisted(
        self, key: OccurrenceKey, exclude: EnrollmentId | None = None
    ) -> Enrollment | None:
        rows = models.Enrollment.objects.filter(
            activity_id=key.activity_id.value,
            occurrence_date=key.occurrence_date,
            state=models.Enrollment.State.WAITLISTED,
        )
        if exclude is not None:
            rows = rows.exclude(pk=exclude.value)
        row = rows.order_by("created_at").first()
        return _enrollment_to_domain(row) if row else None

    def list_for_user(
        self,
        user_id: str,
        activity_id: ActivityId | None = None,
        state: EnrollmentState | None = None,
        since: date | None = None,
    ) -> list[Enrollment]:
        rows = _enrollment_rows(user_id=user_id, activity_id=activity_id, state=state)
        if since is not None:
            rows = rows.filter(occurrence_date__gte=since)
        return [_enrollment_to_domain(row) for row in rows]

    def list_for_activity(
        self,
        activity_id: ActivityId,
        state: EnrollmentState | None = None,
        occurrence_date: date | None = None,
    ) -> list[Enrollment]:
        return self.list_enrollments(
            activity_id=activity_id, state=state, occurrence_date=occurrence_date
        )

    def list_enrollments(
        self,
        user_id: str | None = None,
        activity_id: ActivityId | None = None,
        state: EnrollmentState | None = None,
        occurrence_date: date | None = None,
    ) -> list[Enrollment]:
        rows = _enrollment_rows(
            user_id=user_id,
            activity_id=activity_id,
            state=state,
            occurrence_date=occurrence_date,
        )
        return [_enrollment_to_domain(row) for row in rows]


class DjangoCapacityLedger(CapacityLedger):
    """Ledger kept as one counter row per occurrence.

    ``occurrence_lock`` opens a transaction and row-locks the counter, so
    everything done for the key inside it commits or rolls back together.
    """

    @staticmethod
    def _rows(key: OccurrenceKey):
        return models.OccurrenceLedger.objects.filter(
            activity_id=key.activity_id.value, occurrence_date=key.occurrence_date
        )

    def _ensure_row(self, key: OccurrenceKey) -> None:
        models.OccurrenceLedger.objects.get_or_create(
            activity_id=key.activity_id.value, occurrence_date=key.occurrence_date
        )

    @contextmanager
    def occurrence_lock(self, key: OccurrenceKey) -> Iterator[None]:
        with transaction.atomic():
            self._ensure_row(key)
            self._rows(key).select_for_update().get()
            yield

    def accepted_count(self, key: OccurrenceKey) -> int:
        count = self._rows(key).values_list("accepted_count", flat=True).first()
        return count or 0

    def accepted_counts(self, activity_id: ActivityId, dates: list[date]) -> dict[date, int]:
        rows = models.OccurrenceLedger.objects.filter(
            activity_id=activity_id.value, occurrence_date__in=dates
        ).values_list("occurrence_date", "accepted_count")
        counts = dict(rows)
        return {day: counts.get(day, 0) for day in dates}

    def reserve(self, key: OccurrenceKey, capacity: int | None) -> bool:
        with transaction.atomic():
            self._ensure_row(key)
            rows = self._rows(key)
            if capacity is not None:
                rows = rows.filter(accepted_count__lt=capacity)
            return rows.update(accepted_count=F("accepted_count") + 1) == 1

    def force_reserve(self, key: OccurrenceKey) -> None:
        with transaction.atomic():
            self._ensure_row(key)
            self._rows(key).update(accepted_count=F("accepted_count") + 1)

    def release(self, key: OccurrenceKey) -> None:
        self._rows(key).filter(accepted_count__gt=0).update(
            accepted_count=F("accepted_count") - 1
        )
