from django.apps import AppConfig


class GarageStatusConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.garage_status"
    verbose_name = "Garage status"

    def ready(self) -> None:  # pragma: no cover - import side effects
        from shared.application.message_bus import message_bus

        from . import signals  # noqa: F401
        from .application.event_handlers import register_handlers

        register_handlers(message_bus)
