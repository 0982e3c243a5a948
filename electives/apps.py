from django.apps import AppConfig


class ElectivesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "electives"
    verbose_name = "选课与交换项目"

    def ready(self) -> None:  # pragma: no cover - Django convention
        from . import signals  # noqa: F401
