"""App config for the quarters module."""
from django.apps import AppConfig


class QuartersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "quarters"
    verbose_name = "Quarterly reporting"
