from django.apps import AppConfig


class IamConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "sc_core.iam"
    verbose_name = "Identity & Access"

    def ready(self) -> None:
        # import here so app loading doesn't break tooling
        from sc_core.iam import openapi  # noqa: F401
