from django.apps import AppConfig


class CourseworkConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.coursework"
    verbose_name = "Coursework"

    def ready(self) -> None:  # pragma: no cover - side effects only
        from . import signals  # noqa: F401
