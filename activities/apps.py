from django.apps import AppConfig


class ActivitiesConfig(AppConfig):
    name = "activities"
    verbose_name = "Activities & Enrollments"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self) -> None:
        from activities import signals  # noqa: F401
