"""Serializers for request payloads and domain-model responses.

Request serializers are the only place raw payloads are checked; services
receive typed values. Response serializers read domain dataclasses.
"""

from rest_framework import serializers

from activities.domain import (
    ActivityFilter,
    ActivityKind,
    ActivityStatus,
    EnrollmentState,
    Frequency,
)
from activities.services import ActivityInput, TransitionResult

ENROLLMENT_STATES = [s.value for s in EnrollmentState]
LISTED_STATUSES = [ActivityStatus.DRAFT.value, ActivityStatus.PUBLISHED.value]

# Upper bounds keep values inside the positive integer columns on every backend.
MAX_CAPACITY = 100_000
MAX_OCCURRENCE_LIMIT = 10_000
MAX_DURATION_MINUTES = 7 * 24 * 60


# Requests


class RecurrenceRuleRequestSerializer(serializers.Serializer):
    frequency = serializers.ChoiceField(choices=[f.value for f in Frequency])
    days_of_week = serializers.ListField(
        child=serializers.IntegerField(min_value=0, max_value=6), required=False, default=list
    )
    days_of_month = serializers.ListField(
        child=serializers.IntegerField(min_value=1, max_value=31), required=False, default=list
    )
    time_of_day = serializers.TimeField()
    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False, allow_null=True, default=None)
    occurrence_limit = serializers.IntegerField(
        max_value=MAX_OCCURRENCE_LIMIT, required=False, allow_null=True, default=None
    )


class ActivityRequestSerializer(serializers.Serializer):
    """Payload for creating or replacing an activity."""

    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    kind = serializers.ChoiceField(choices=[k.value for k in ActivityKind])
    status = serializers.ChoiceField(
        choices=LISTED_STATUSES,
        required=False,
        default=ActivityStatus.DRAFT.value,
    )
    # Lower bounds for capacity and occurrence_limit are domain rules.
    capacity = serializers.IntegerField(
        max_value=MAX_CAPACITY, required=False, allow_null=True, default=None
    )
    requires_approval = serializers.BooleanField(required=False, default=False)
    location = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    duration_minutes = serializers.IntegerField(
        min_value=0,
        max_value=MAX_DURATION_MINUTES,
        required=False,
        allow_null=True,
        default=None,
    )
    categories = serializers.ListField(
        child=serializers.CharField(max_length=100), required=False, default=list
    )
    scheduled_date = serializers.DateField(required=False, allow_null=True, default=None)
    scheduled_time = serializers.TimeField(required=False, allow_null=True, default=None)
    recurrence = RecurrenceRuleRequestSerializer(required=False, allow_null=True, default=None)

    def to_input(self) -> ActivityInput:
        data = self.validated_data
        rule = data["recurrence"] or {}
        return ActivityInput(
            title=data["title"],
            kind=ActivityKind(data["kind"]),
            status=ActivityStatus(data["status"]),
            description=data["description"],
            capacity=data["capacity"],
            requires_approval=data["requires_approval"],
            location=data["location"],
            duration_minutes=data["duration_minutes"],
            categories=tuple(data["categories"]),
            scheduled_date=data["scheduled_date"],
            scheduled_time=data["scheduled_time"],
            frequency=Frequency(rule["frequency"]) if rule else None,
            days_of_week=tuple(rule.get("days_of_week", ())),
            days_of_month=tuple(rule.get("days_of_month", ())),
            time_of_day=rule.get("time_of_day"),
            start_date=rule.get("start_date"),
            end_date=rule.get("end_date"),
            occurrence_limit=rule.get("occurrence_limit"),
        )


class EnrollRequestSerializer(serializers.Serializer):
    activity_id = serializers.CharField()
    occurrence_date = serializers.DateField(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    # Admin only: enroll someone else.
    user_id = serializers.CharField(required=False, allow_null=True, default=None)


class SetStateRequestSerializer(serializers.Serializer):
    state = serializers.ChoiceField(choices=ENROLLMENT_STATES)


class ActivityFilterSerializer(serializers.Serializer):
    """Query-string filters for the activity catalog."""

    search = serializers.CharField(required=False, allow_blank=True, default="")
    category = serializers.CharField(required=False, allow_blank=True, default="")
    status = serializers.ChoiceField(choices=LISTED_STATUSES, required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get("date_from"), attrs.get("date_to")
        if start is not None and end is not None and end < start:
            raise serializers.ValidationError({"date_to": "Must not be before date_from."})
        return attrs

    def to_filter(self) -> ActivityFilter:
        data = self.validated_data
        return ActivityFilter(
            search=data["search"],
            category=data["category"],
            period_start=data.get("date_from"),
            period_end=data.get("date_to"),
        )

    def status_value(self) -> ActivityStatus | None:
        status = self.validated_data.get("status")
        return ActivityStatus(status) if status else None


class EnrollmentFilterSerializer(serializers.Serializer):
    """Query-string filters for enrollment listings."""

    state = serializers.ChoiceField(choices=ENROLLMENT_STATES, required=False)
    date = serializers.DateField(required=False)
    # Only read by the caller's own listing.
    upcoming = serializers.BooleanField(required=False, default=False)

    def state_value(self) -> EnrollmentState | None:
        state = self.validated_data.get("state")
        return EnrollmentState(state) if state else None


class AdminEnrollmentFilterSerializer(EnrollmentFilterSerializer):
    user_id = serializers.CharField(required=False)
    activity_id = serializers.CharField(required=False)


# Responses


class OccurrenceSerializer(serializers.Serializer):
    date = serializers.DateField(source="occurrence_date")
    time = serializers.TimeField(source="time_of_day", allow_null=True)


class RecurrenceRuleSerializer(serializers.Serializer):
    frequency = serializers.CharField(source="frequency.value")
    days_of_week = serializers.SerializerMethodField()
    days_of_month = serializers.SerializerMethodField()
    time_of_day = serializers.TimeField()
    start_date = serializers.DateField()
    end_date = serializers.DateField(allow_null=True)
    occurrence_limit = serializers.IntegerField(allow_null=True)

    def get_days_of_week(self, rule) -> list[int]:
        return sorted(rule.days_of_week)

    def get_days_of_month(self, rule) -> list[int]:
        return sorted(rule.days_of_month)


class ActivitySerializer(serializers.Serializer):
    """Serializer for Activity domain model."""

    id = serializers.UUIDField(source="id.value")
    title = serializers.CharField()
    description = serializers.CharField()
    kind = serializers.CharField(source="kind.value")
    status = serializers.CharField(source="status.value")
    capacity = serializers.IntegerField(source="capacity.value", allow_null=True)
    requires_approval = serializers.BooleanField()
    location = serializers.CharField()
    duration_minutes = serializers.IntegerField(allow_null=True)
    categories = serializers.ListField(child=serializers.CharField())
    scheduled_date = serializers.DateField(allow_null=True)
    scheduled_time = serializers.TimeField(allow_null=True)
    recurrence = RecurrenceRuleSerializer(allow_null=True)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class ActivityListingSerializer(serializers.Serializer):
    """Activity fields plus its next occurrence and the caller's own enrollment."""

    def to_representation(self, listing):
        data = ActivitySerializer(listing.activity).data
        upcoming = listing.next_occurrence
        data["next_occurrence"] = OccurrenceSerializer(upcoming).data if upcoming else None
        own = listing.caller_enrollment
        data["caller_enrollment_state"] = own.state.value if own else None
        data["caller_enrollment_date"] = own.occurrence_date.isoformat() if own else None
        return data


class OccurrenceAvailabilitySerializer(serializers.Serializer):
    """Serializer for OccurrenceAvailability read model."""

    date = serializers.DateField(source="occurrence_date")
    time = serializers.TimeField(source="time_of_day", allow_null=True)
    slots_available = serializers.IntegerField(allow_null=True)
    has_capacity = serializers.BooleanField()
    caller_enrollment_state = serializers.CharField(
        source="caller_enrollment_state.value", allow_null=True
    )


class EnrollmentSerializer(serializers.Serializer):
    """Serializer for Enrollment domain model."""

    id = serializers.UUIDField(source="id.value")
    activity_id = serializers.UUIDField(source="activity_id.value")
    user_id = serializers.CharField()
    occurrence_date = serializers.DateField()
    state = serializers.CharField(source="state.value")
    notes = serializers.CharField()
    created_at = serializers.DateTimeField()
    approved_at = serializers.DateTimeField(allow_null=True)
    cancelled_at = serializers.DateTimeField(allow_null=True)


class TransitionResultSerializer(serializers.Serializer):
    """Enrollment fields plus the outcome and any waitlist promotions."""

    def to_representation(self, result: TransitionResult):
        data = EnrollmentSerializer(result.enrollment).data
        data["outcome"] = result.outcome.value
        data["promoted"] = EnrollmentSerializer(result.promoted, many=True).data
        return data
