"""Integration tests for the enrollment endpoints.

Run with: pytest tests/test_enrollment_api.py -v
"""

from datetime import timedelta

import pytest
from django.contrib.auth.models import Group
from django.utils import timezone
from rest_framework.test import APIClient

from activities.domain import EnrollmentState
from activities.signals import enrollment_transitioned


@pytest.fixture
def make_activity(api_client: APIClient, staff_user):
    """Creates a published daily activity as staff and returns its ID."""

    def create(capacity=1, requires_approval=False) -> str:
        api_client.force_authenticate(user=staff_user)
        response = api_client.post(
            "/api/activities",
            {
                "title": "Lunchtime swim",
                "kind": "recurring",
                "status": "published",
                "capacity": capacity,
                "requires_approval": requires_approval,
                "recurrence": {
                    "frequency": "daily",
                    "time_of_day": "12:00",
                    "start_date": timezone.localdate().isoformat(),
                },
            },
            format="json",
        )
        assert response.status_code == 201, response.data
        api_client.force_authenticate(user=None)
        return response.data["id"]

    return create


def enroll(client: APIClient, user, activity_id: str, **extra):
    client.force_authenticate(user=user)
    payload = {"activity_id": activity_id, "occurrence_date": timezone.localdate().isoformat()}
    payload.update(extra)
    return client.post("/api/enrollments", payload, format="json")


@pytest.mark.django_db
class TestEnrollmentCreate:
    """Tests for POST /api/enrollments"""

    def test_enroll_accepted(self, api_client: APIClient, participant_user, make_activity):
        """With a free seat the enrollment is accepted."""
        activity_id = make_activity()
        response = enroll(api_client, participant_user, activity_id, notes="Bringing a towel")

        assert response.status_code == 201
        assert response.data["state"] == "accepted"
        assert response.data["outcome"] == "ok"
        assert response.data["user_id"] == str(participant_user.pk)
        assert response.data["notes"] == "Bringing a towel"
        assert response.data["promoted"] == []

    def test_full_occurrence_waitlists(
        self, api_client: APIClient, participant_user, second_participant_user, make_activity
    ):
        """The second participant for a single seat is waitlisted."""
        activity_id = make_activity(capacity=1)
        enroll(api_client, participant_user, activity_id)

        response = enroll(api_client, second_participant_user, activity_id)

        assert response.status_code == 201
        assert response.data["state"] == "waitlisted"
        assert response.data["outcome"] == "capacity_conflict"

    def test_duplicate_returns_conflict(
        self, api_client: APIClient, participant_user, make_activity
    ):
        """A second enrollment for the same occurrence is a conflict."""
        activity_id = make_activity()
        first = enroll(api_client, participant_user, activity_id)

        response = enroll(api_client, participant_user, activity_id)

        assert response.status_code == 409
        assert response.data["code"] == "DUPLICATE_ENROLLMENT"
        assert response.data["state"] == "accepted"
        assert response.data["enrollment_id"] == first.data["id"]

    def test_missing_date_for_recurring(
        self, api_client: APIClient, participant_user, make_activity
    ):
        """Recurring activities need an occurrence date."""
        activity_id = make_activity()
        api_client.force_authenticate(user=participant_user)
        response = api_client.post("/api/enrollments", {"activity_id": activity_id}, format="json")
        assert response.status_code == 400
        assert response.data["code"] == "OCCURRENCE_DATE_REQUIRED"

    def test_date_outside_rule(self, api_client: APIClient, participant_user, make_activity):
        """Dates before the series starts have no occurrence."""
        activity_id = make_activity()
        yesterday = (timezone.localdate() - timedelta(days=1)).isoformat()
        response = enroll(api_client, participant_user, activity_id, occurrence_date=yesterday)
        assert response.status_code == 404
        assert response.data["code"] == "OCCURRENCE_NOT_FOUND"

    def test_unknown_activity(self, api_client: APIClient, participant_user):
        """Unknown activities are not found."""
        response = enroll(api_client, participant_user, "0b7e3f4c-1a2b-4c5d-8e9f-0a1b2c3d4e5f")
        assert response.status_code == 404

    def test_unapproved_participant(
        self, api_client: APIClient, participant_user, make_activity, settings
    ):
        """When an approval group is configured, only its members may enroll."""
        settings.ACTIVITIES = {"APPROVED_PARTICIPANT_GROUP": "participants"}
        activity_id = make_activity()

        refused = enroll(api_client, participant_user, activity_id)
        participant_user.groups.add(Group.objects.create(name="participants"))
        accepted = enroll(api_client, participant_user, activity_id)

        assert refused.status_code == 403
        assert accepted.status_code == 201

    def test_occurrence_shows_caller_state(
        self, api_client: APIClient, participant_user, make_activity
    ):
        """After enrolling, the occurrence listing shows the caller's state and fewer seats."""
        activity_id = make_activity(capacity=2)
        enroll(api_client, participant_user, activity_id)

        response = api_client.get(f"/api/activities/{activity_id}/occurrences")

        today = response.data[0]
        assert today["caller_enrollment_state"] == "accepted"
        assert today["slots_available"] == 1
        assert response.data[1]["caller_enrollment_state"] is None

    def test_transition_signal_sent_after_commit(
        self,
        api_client: APIClient,
        participant_user,
        make_activity,
        django_capture_on_commit_callbacks,
    ):
        """Receivers hear about new enrollments once the transaction commits."""
        activity_id = make_activity()
        received = []

        def receiver(sender, enrollment, previous_state, **kwargs):
            received.append((enrollment.state, previous_state))

        enrollment_transitioned.connect(receiver)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                enroll(api_client, participant_user, activity_id)
        finally:
            enrollment_transitioned.disconnect(receiver)

        assert received == [(EnrollmentState.ACCEPTED, None)]


@pytest.mark.django_db
class TestEnrollmentCancel:
    """Tests for POST /api/enrollments/{enrollment_id}/cancel"""

    def test_cancel_promotes_waitlisted(
        self, api_client: APIClient, participant_user, second_participant_user, make_activity
    ):
        """Cancelling an accepted enrollment accepts the oldest waitlisted one."""
        activity_id = make_activity(capacity=1)
        first = enroll(api_client, participant_user, activity_id).data
        waiting = enroll(api_client, second_participant_user, activity_id).data

        api_client.force_authenticate(user=participant_user)
        response = api_client.post(f"/api/enrollments/{first['id']}/cancel")

        assert response.status_code == 200
        assert response.data["state"] == "cancelled"
        assert [e["id"] for e in response.data["promoted"]] == [waiting["id"]]
        assert response.data["promoted"][0]["state"] == "accepted"

    def test_cancel_someone_elses_enrollment(
        self, api_client: APIClient, participant_user, second_participant_user, make_activity
    ):
        """Participants can only cancel their own enrollments."""
        activity_id = make_activity()
        first = enroll(api_client, participant_user, activity_id).data

        api_client.force_authenticate(user=second_participant_user)
        response = api_client.post(f"/api/enrollments/{first['id']}/cancel")

        assert response.status_code == 403

    def test_cancel_twice(self, api_client: APIClient, participant_user, make_activity):
        """A cancelled enrollment cannot be cancelled again."""
        activity_id = make_activity()
        first = enroll(api_client, participant_user, activity_id).data
        api_client.post(f"/api/enrollments/{first['id']}/cancel")

        response = api_client.post(f"/api/enrollments/{first['id']}/cancel")

        assert response.status_code == 409
        assert response.data["code"] == "ILLEGAL_TRANSITION"
        assert response.data["state"] == "cancelled"

    def test_unknown_enrollment(self, api_client: APIClient, participant_user):
        """Unknown enrollments return 404."""
        api_client.force_authenticate(user=participant_user)
        response = api_client.post("/api/enrollments/0b7e3f4c-1a2b-4c5d-8e9f-0a1b2c3d4e5f/cancel")
        assert response.status_code == 404
        assert response.data["code"] == "ENROLLMENT_NOT_FOUND"


@pytest.mark.django_db
class TestEnrollmentState:
    """Tests for POST /api/enrollments/{enrollment_id}/state"""

    def test_admin_override(
        self,
        api_client: APIClient,
        staff_user,
        participant_user,
        second_participant_user,
        make_activity,
    ):
        """Admins may accept a waitlisted enrollment past capacity."""
        activity_id = make_activity(capacity=1)
        enroll(api_client, participant_user, activity_id)
        waiting = enroll(api_client, second_participant_user, activity_id).data

        api_client.force_authenticate(user=staff_user)
        response = api_client.post(
            f"/api/enrollments/{waiting['id']}/state", {"state": "accepted"}, format="json"
        )

        assert response.status_code == 200
        assert response.data["state"] == "accepted"
        occurrences = api_client.get(f"/api/activities/{activity_id}/occurrences").data
        assert occurrences[0]["slots_available"] == 0

    def test_participants_cannot_override(
        self, api_client: APIClient, participant_user, make_activity
    ):
        """The override is admin only."""
        activity_id = make_activity()
        first = enroll(api_client, participant_user, activity_id).data
        response = api_client.post(
            f"/api/enrollments/{first['id']}/state", {"state": "pending"}, format="json"
        )
        assert response.status_code == 403

    def test_cancelled_cannot_be_overridden(
        self, api_client: APIClient, staff_user, participant_user, make_activity
    ):
        """Cancelled enrollments are final."""
        activity_id = make_activity()
        first = enroll(api_client, participant_user, activity_id).data
        api_client.post(f"/api/enrollments/{first['id']}/cancel")

        api_client.force_authenticate(user=staff_user)
        response = api_client.post(
            f"/api/enrollments/{first['id']}/state", {"state": "accepted"}, format="json"
        )

        assert response.status_code == 409

    def test_unknown_state(
        self, api_client: APIClient, staff_user, participant_user, make_activity
    ):
        """Unknown target states are rejected by the payload check."""
        activity_id = make_activity()
        first = enroll(api_client, participant_user, activity_id).data
        api_client.force_authenticate(user=staff_user)
        response = api_client.post(
            f"/api/enrollments/{first['id']}/state", {"state": "maybe"}, format="json"
        )
        assert response.status_code == 400


@pytest.mark.django_db
class TestApprovalWorkflow:
    """Tests for POST /api/enrollments/{enrollment_id}/approve and /reject"""

    def test_approve_then_waitlist(
        self,
        api_client: APIClient,
        staff_user,
        participant_user,
        second_participant_user,
        make_activity,
    ):
        """Approval takes the seat; approving a second pending request waitlists it."""
        activity_id = make_activity(capacity=1, requires_approval=True)
        first = enroll(api_client, participant_user, activity_id).data
        second = enroll(api_client, second_participant_user, activity_id).data
        assert first["state"] == second["state"] == "pending"

        api_client.force_authenticate(user=staff_user)
        approved = api_client.post(f"/api/enrollments/{first['id']}/approve")
        downgraded = api_client.post(f"/api/enrollments/{second['id']}/approve")

        assert approved.data["state"] == "accepted"
        assert downgraded.data["state"] == "waitlisted"
        assert downgraded.data["outcome"] == "capacity_conflict"

    def test_reject(self, api_client: APIClient, staff_user, participant_user, make_activity):
        """Rejecting cancels a pending enrollment."""
        activity_id = make_activity(requires_approval=True)
        first = enroll(api_client, participant_user, activity_id).data

        api_client.force_authenticate(user=staff_user)
        response = api_client.post(f"/api/enrollments/{first['id']}/reject")

        assert response.status_code == 200
        assert response.data["state"] == "cancelled"

    def test_participants_cannot_approve(
        self, api_client: APIClient, participant_user, make_activity
    ):
        """Approving is admin only."""
        activity_id = make_activity(requires_approval=True)
        first = enroll(api_client, participant_user, activity_id).data
        response = api_client.post(f"/api/enrollments/{first['id']}/approve")
        assert response.status_code == 403


@pytest.mark.django_db
class TestEnrollmentQueries:
    """Tests for GET /api/enrollments/mine, /api/enrollments/{id} and activity rosters"""

    def test_my_enrollments(
        self, api_client: APIClient, participant_user, second_participant_user, make_activity
    ):
        """Participants list only their own enrollments."""
        activity_id = make_activity(capacity=5)
        enroll(api_client, second_participant_user, activity_id)
        mine = enroll(api_client, participant_user, activity_id).data

        response = api_client.get("/api/enrollments/mine")

        assert response.status_code == 200
        assert [e["id"] for e in response.data] == [mine["id"]]

    def test_my_enrollments_state_filter(
        self, api_client: APIClient, participant_user, make_activity
    ):
        """The state query parameter narrows the listing."""
        activity_id = make_activity()
        enroll(api_client, participant_user, activity_id)
        assert api_client.get("/api/enrollments/mine", {"state": "waitlisted"}).data == []
        assert len(api_client.get("/api/enrollments/mine", {"state": "accepted"}).data) == 1

    def test_enrollment_detail(
        self, api_client: APIClient, participant_user, second_participant_user, make_activity
    ):
        """Owners can read their enrollment; others cannot."""
        activity_id = make_activity()
        mine = enroll(api_client, participant_user, activity_id).data

        own = api_client.get(f"/api/enrollments/{mine['id']}")
        api_client.force_authenticate(user=second_participant_user)
        foreign = api_client.get(f"/api/enrollments/{mine['id']}")

        assert own.status_code == 200
        assert own.data["state"] == "accepted"
        assert foreign.status_code == 403

    def test_roster_for_admins(
        self,
        api_client: APIClient,
        staff_user,
        participant_user,
        second_participant_user,
        make_activity,
    ):
        """Admins list an activity's enrollments filtered by state."""
        activity_id = make_activity(capacity=1)
        enroll(api_client, participant_user, activity_id)
        waiting = enroll(api_client, second_participant_user, activity_id).data

        response = api_client.get(f"/api/activities/{activity_id}/enrollments")
        assert response.status_code == 403

        api_client.force_authenticate(user=staff_user)
        response = api_client.get(
            f"/api/activities/{activity_id}/enrollments", {"state": "waitlisted"}
        )
        assert [e["id"] for e in response.data] == [waiting["id"]]


@pytest.mark.django_db
class TestEnrollmentAdminList:
    """Tests for GET /api/enrollments"""

    def test_participants_forbidden(self, api_client: APIClient, participant_user):
        """Only admins list everyone's enrollments."""
        api_client.force_authenticate(user=participant_user)
        response = api_client.get("/api/enrollments")
        assert response.status_code == 403
        assert response.data["code"] == "FORBIDDEN"

    def test_filters(
        self,
        api_client: APIClient,
        staff_user,
        participant_user,
        second_participant_user,
        make_activity,
    ):
        """State, user, activity and date filters combine."""
        swim = make_activity(capacity=1)
        other = make_activity(capacity=5)
        first = enroll(api_client, participant_user, swim).data
        waiting = enroll(api_client, second_participant_user, swim).data
        elsewhere = enroll(api_client, participant_user, other).data
        api_client.force_authenticate(user=staff_user)

        def ids(**params) -> list[str]:
            response = api_client.get("/api/enrollments", params)
            assert response.status_code == 200, response.data
            return [e["id"] for e in response.data]

        assert set(ids()) == {first["id"], waiting["id"], elsewhere["id"]}
        assert ids(state="waitlisted") == [waiting["id"]]
        assert set(ids(user_id=str(participant_user.pk))) == {first["id"], elsewhere["id"]}
        assert ids(activity_id=other) == [elsewhere["id"]]
        tomorrow = (timezone.localdate() + timedelta(days=1)).isoformat()
        assert ids(activity_id=swim, date=tomorrow) == []

    def test_malformed_activity_id(self, api_client: APIClient, staff_user):
        """A malformed activity filter is reported as an invalid ID."""
        api_client.force_authenticate(user=staff_user)
        response = api_client.get("/api/enrollments", {"activity_id": "nope"})
        assert response.status_code == 400
        assert response.data["code"] == "INVALID_ID"


@pytest.mark.django_db
class TestEnrollmentBoundaries:
    """Edge dates and the upcoming filter"""

    def test_last_representable_date(
        self, api_client: APIClient, participant_user, make_activity
    ):
        """An open-ended daily series can be booked on 9999-12-31."""
        activity_id = make_activity()
        response = enroll(api_client, participant_user, activity_id, occurrence_date="9999-12-31")
        assert response.status_code == 201, response.data
        assert response.data["occurrence_date"] == "9999-12-31"

    def test_upcoming_hides_old_enrollments(
        self, api_client: APIClient, staff_user, participant_user, make_activity
    ):
        """upcoming=true leaves out enrollments from before yesterday."""
        old_date = timezone.localdate() - timedelta(days=40)
        api_client.force_authenticate(user=staff_user)
        past = api_client.post(
            "/api/activities",
            {
                "title": "Old workshop",
                "kind": "single",
                "status": "published",
                "scheduled_date": old_date.isoformat(),
                "scheduled_time": "10:00",
            },
            format="json",
        ).data
        enroll(api_client, participant_user, past["id"], occurrence_date=old_date.isoformat())
        current = enroll(api_client, participant_user, make_activity()).data

        everything = api_client.get("/api/enrollments/mine")
        upcoming = api_client.get("/api/enrollments/mine", {"upcoming": "true"})

        assert len(everything.data) == 2
        assert [e["id"] for e in upcoming.data] == [current["id"]]
