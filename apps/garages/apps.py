from django.apps import AppConfig


class GaragesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.garages"
    verbose_name = "Garages"
