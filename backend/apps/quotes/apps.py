"""Quotes app configuration."""

from django.apps import AppConfig


class QuotesConfig(AppConfig):
    """Configuration for quotes app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.quotes"
