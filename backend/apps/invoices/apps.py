"""Invoices app configuration."""

from django.apps import AppConfig


class InvoicesConfig(AppConfig):
    """Configuration for invoices app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.invoices"
