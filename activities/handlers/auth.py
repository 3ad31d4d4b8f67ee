"""Caller identity from the authenticated Django user.

Authentication itself is Django's and DRF's job; this only reads the
flags the enrollment engine needs.
"""

from rest_framework.request import Request

from activities.conf import get_setting
from activities.domain import Caller


def caller_from_request(request: Request) -> Caller:
    user = request.user
    is_admin = bool(user.is_staff)
    group = get_setting("APPROVED_PARTICIPANT_GROUP")
    is_approved = is_admin or group is None or user.groups.filter(name=group).exists()
    return Caller(user_id=str(user.pk), is_admin=is_admin, is_approved=is_approved)
