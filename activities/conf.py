"""App settings, read from ``settings.ACTIVITIES`` with defaults."""

from django.conf import settings

DEFAULTS = {
    # Days after today shown in occurrence listings (yesterday is always shown).
    "DISPLAY_HORIZON_DAYS": 30,
    # Django group whose members may enroll; None lets any authenticated user enroll.
    "APPROVED_PARTICIPANT_GROUP": None,
}


def get_setting(name: str):
    if name not in DEFAULTS:
        raise KeyError(f"Unknown activities setting: {name}")
    return getattr(settings, "ACTIVITIES", {}).get(name, DEFAULTS[name])
