from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "sc_core.notifications"

    def ready(self) -> None:
        # registers event subscribers
        from sc_core.notifications import subscribers  # noqa: F401
