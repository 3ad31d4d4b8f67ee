"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models
from django.db.models import Q


class Activity(models.Model):
    """Persistence model for activities."""

    class Kind(models.TextChoices):
        SINGLE = "single"
        RECURRING = "recurring"

    class Status(models.TextChoices):
        DRAFT = "draft"
        PUBLISHED = "published"
        DELETED = "deleted"

    class Frequency(models.TextChoices):
        DAILY = "daily"
        WEEKLY = "weekly"
        MONTHLY = "monthly"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    kind = models.CharField(max_length=16, choices=Kind.choices)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.DRAFT)
    capacity = models.PositiveIntegerField(null=True, blank=True)
    requires_approval = models.BooleanField(default=False)
    location = models.CharField(max_length=255, blank=True)
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    categories = models.JSONField(default=list, blank=True)

    # Single activities
    scheduled_date = models.DateField(null=True, blank=True)
    scheduled_time = models.TimeField(null=True, blank=True)

    # Recurring activities
    frequency = models.CharField(max_length=16, choices=Frequency.choices, blank=True)
    days_of_week = models.JSONField(default=list, blank=True)
    days_of_month = models.JSONField(default=list, blank=True)
    time_of_day = models.TimeField(null=True, blank=True)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    occurrence_limit = models.PositiveIntegerField(null=True, blank=True)

    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "-created_at"], name="activity_status_created_idx"),
        ]

    def __str__(self) -> str:
        return self.title


class Enrollment(models.Model):
    """Persistence model for enrollments. Rows are never deleted."""

    class State(models.TextChoices):
        PENDING = "pending"
        ACCEPTED = "accepted"
        CANCELLED = "cancelled"
        WAITLISTED = "waitlisted"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    activity = models.ForeignKey(
        Activity, on_delete=models.PROTECT, related_name="enrollments"
    )
    user_id = models.CharField(max_length=255)
    occurrence_date = models.DateField()
    state = models.CharField(max_length=16, choices=State.choices)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField()
    approved_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["occurrence_date", "created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user_id", "activity", "occurrence_date"],
                condition=~Q(state="cancelled"),
                name="unique_active_enrollment_per_occurrence",
            ),
        ]
        indexes = [
            models.Index(
                fields=["activity", "occurrence_date", "state", "created_at"],
                name="enrollment_occurrence_idx",
            ),
            models.Index(fields=["user_id", "occurrence_date"], name="enrollment_user_date_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} - {self.activity_id} @ {self.occurrence_date} ({self.state})"


class OccurrenceLedger(models.Model):
    """Materialized accepted-enrollment count for one occurrence.

    The row doubles as the per-occurrence lock (SELECT ... FOR UPDATE).
    """

    activity = models.ForeignKey(
        Activity, on_delete=models.CASCADE, related_name="ledger_entries"
    )
    occurrence_date = models.DateField()
    accepted_count = models.PositiveIntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["activity", "occurrence_date"],
                name="unique_ledger_entry_per_occurrence",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.activity_id} @ {self.occurrence_date}: {self.accepted_count}"
