from django.urls import path

from activities.handlers import (
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

urlpatterns = [
    path("activities", ActivityListView.as_view(), name="activity-list"),
    path("activities/<str:activity_id>", ActivityDetailView.as_view(), name="activity-detail"),
    path(
        "activities/<str:activity_id>/occurrences",
        OccurrenceListView.as_view(),
        name="occurrence-list",
    ),
    path(
        "activities/<str:activity_id>/enrollments",
        ActivityEnrollmentListView.as_view(),
        name="activity-enrollment-list",
    ),
    path("enrollments", EnrollmentListView.as_view(), name="enrollment-list"),
    path("enrollments/mine", MyEnrollmentListView.as_view(), name="my-enrollment-list"),
    path(
        "enrollments/<str:enrollment_id>",
        EnrollmentDetailView.as_view(),
        name="enrollment-detail",
    ),
    path(
        "enrollments/<str:enrollment_id>/approve",
        EnrollmentApproveView.as_view(),
        name="enrollment-approve",
    ),
    path(
        "enrollments/<str:enrollment_id>/reject",
        EnrollmentRejectView.as_view(),
        name="enrollment-reject",
    ),
    path(
        "enrollments/<str:enrollment_id>/cancel",
        EnrollmentCancelView.as_view(),
        name="enrollment-cancel",
    ),
    path(
        "enrollments/<str:enrollment_id>/state",
        EnrollmentStateView.as_view(),
        name="enrollment-state",
    ),
]
