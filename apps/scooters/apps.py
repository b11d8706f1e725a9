from django.apps import AppConfig


class ScootersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.scooters"
    verbose_name = "Scooters"
