"""
Clients models - the contractor's customers.
"""

from django.db import models

from apps.core.models import UserScopedModel


class Client(UserScopedModel):
    """A customer that quotes and invoices are addressed to."""

    class ClientType(models.TextChoices):
        RESIDENTIAL = "residential", "Residential"
        COMMERCIAL = "commercial", "Commercial"

    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    address = models.TextField(blank=True)
    client_type = models.CharField(
        max_length=20,
        choices=ClientType.choices,
        default=ClientType.RESIDENTIAL,
    )
    notes = models.TextField(blank=True)

    class Meta:
        db_table = "clients"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name
