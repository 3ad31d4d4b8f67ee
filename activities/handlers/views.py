"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Leave domain-error mapping to handlers.errors.domain_exception_handler
- Never contain business logic
"""

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from activities.domain import EnrollmentState
from activities.handlers.auth import caller_from_request
from activities.handlers.deps import (
    get_activity_service,
    get_availability_resolver,
    get_enrollment_service,
)
from activities.handlers.serializers import (
    ActivityFilterSerializer,
    ActivityListingSerializer,
    ActivityRequestSerializer,
    ActivitySerializer,
    AdminEnrollmentFilterSerializer,
    EnrollmentFilterSerializer,
    EnrollmentSerializer,
    EnrollRequestSerializer,
    OccurrenceAvailabilitySerializer,
    SetStateRequestSerializer,
    TransitionResultSerializer,
)


class ActivityListView(APIView):
    """Handler for GET/POST /api/activities"""

    def get(self, request: Request) -> Response:
        filters = ActivityFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        listings = get_activity_service().list_activities(
            caller_from_request(request),
            filters=filters.to_filter(),
            status=filters.status_value(),
        )
        return Response(ActivityListingSerializer(listings, many=True).data)

    def post(self, request: Request) -> Response:
        payload = ActivityRequestSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        activity = get_activity_service().create_activity(
            caller_from_request(request), payload.to_input()
        )
        return Response(ActivitySerializer(activity).data, status=status.HTTP_201_CREATED)


class ActivityDetailView(APIView):
    """Handler for GET/PUT/DELETE /api/activities/{activity_id}"""

    def get(self, request: Request, activity_id: str) -> Response:
        activity = get_activity_service().get_activity(caller_from_request(request), activity_id)
        return Response(ActivitySerializer(activity).data)

    def put(self, request: Request, activity_id: str) -> Response:
        payload = ActivityRequestSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        activity = get_activity_service().update_activity(
            caller_from_request(request), activity_id, payload.to_input()
        )
        return Response(ActivitySerializer(activity).data)

    def delete(self, request: Request, activity_id: str) -> Response:
        get_activity_service().delete_activity(caller_from_request(request), activity_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class OccurrenceListView(APIView):
    """Handler for GET /api/activities/{activity_id}/occurrences"""

    def get(self, request: Request, activity_id: str) -> Response:
        occurrences = get_availability_resolver().occurrences(
            caller_from_request(request), activity_id
        )
        return Response(OccurrenceAvailabilitySerializer(occurrences, many=True).data)


class ActivityEnrollmentListView(APIView):
    """Handler for GET /api/activities/{activity_id}/enrollments"""

    def get(self, request: Request, activity_id: str) -> Response:
        filters = EnrollmentFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        enrollments = get_enrollment_service().list_activity_enrollments(
            caller_from_request(request),
            activity_id,
            state=filters.state_value(),
            occurrence_date=filters.validated_data.get("date"),
        )
        return Response(EnrollmentSerializer(enrollments, many=True).data)


class EnrollmentListView(APIView):
    """Handler for GET/POST /api/enrollments"""

    def get(self, request: Request) -> Response:
        filters = AdminEnrollmentFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        data = filters.validated_data
        enrollments = get_enrollment_service().list_enrollments(
            caller_from_request(request),
            user_id=data.get("user_id"),
            activity_id=data.get("activity_id"),
            state=filters.state_value(),
            occurrence_date=data.get("date"),
        )
        return Response(EnrollmentSerializer(enrollments, many=True).data)

    def post(self, request: Request) -> Response:
        payload = EnrollRequestSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data
        result = get_enrollment_service().enroll(
            caller_from_request(request),
            data["activity_id"],
            occurrence_date=data["occurrence_date"],
            notes=data["notes"],
            user_id=data["user_id"],
        )
        return Response(TransitionResultSerializer(result).data, status=status.HTTP_201_CREATED)


class MyEnrollmentListView(APIView):
    """Handler for GET /api/enrollments/mine"""

    def get(self, request: Request) -> Response:
        filters = EnrollmentFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        enrollments = get_enrollment_service().list_my_enrollments(
            caller_from_request(request),
            state=filters.state_value(),
            upcoming=filters.validated_data["upcoming"],
        )
        return Response(EnrollmentSerializer(enrollments, many=True).data)


class EnrollmentDetailView(APIView):
    """Handler for GET /api/enrollments/{enrollment_id}"""

    def get(self, request: Request, enrollment_id: str) -> Response:
        enrollment = get_enrollment_service().get_enrollment(
            caller_from_request(request), enrollment_id
        )
        return Response(EnrollmentSerializer(enrollment).data)


class EnrollmentApproveView(APIView):
    """Handler for POST /api/enrollments/{enrollment_id}/approve"""

    def post(self, request: Request, enrollment_id: str) -> Response:
        result = get_enrollment_service().approve(caller_from_request(request), enrollment_id)
        return Response(TransitionResultSerializer(result).data)


class EnrollmentRejectView(APIView):
    """Handler for POST /api/enrollments/{enrollment_id}/reject"""

    def post(self, request: Request, enrollment_id: str) -> Response:
        result = get_enrollment_service().reject(caller_from_request(request), enrollment_id)
        return Response(TransitionResultSerializer(result).data)


class EnrollmentCancelView(APIView):
    """Handler for POST /api/enrollments/{enrollment_id}/cancel"""

    def post(self, request: Request, enrollment_id: str) -> Response:
        result = get_enrollment_service().cancel(caller_from_request(request), enrollment_id)
        return Response(TransitionResultSerializer(result).data)


class EnrollmentStateView(APIView):
    """Handler for POST /api/enrollments/{enrollment_id}/state (admin override)"""

    def post(self, request: Request, enrollment_id: str) -> Response:
        payload = SetStateRequestSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        result = get_enrollment_service().set_state(
            caller_from_request(request),
            enrollment_id,
            EnrollmentState(payload.validated_data["state"]),
        )
        return Response(TransitionResultSerializer(result).data)
