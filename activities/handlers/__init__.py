from activities.handlers.views import (
    ActivityDetailView,
    ActivityEnrollmentListView,
    ActivityListView,
    EnrollmentApproveView,
    EnrollmentCancelView,
    EnrollmentDetailView,
    EnrollmentListView,
    EnrollmentRejectView,
    EnrollmentStateView,
    MyEnrollmentListView,
    OccurrenceListView,
)

__all__ = [
    "ActivityDetailView",
    "ActivityEnrollmentListView",
    "ActivityListView",
    "EnrollmentApproveView",
    "EnrollmentCancelView",
    "EnrollmentDetailView",
    "EnrollmentListView",
    "EnrollmentRejectView",
    "EnrollmentStateView",
    "MyEnrollmentListView",
    "OccurrenceListView",
]
