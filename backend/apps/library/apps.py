"""Library app configuration."""

from django.apps import AppConfig


class LibraryConfig(AppConfig):
    """Configuration for the billable items library app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.library"
