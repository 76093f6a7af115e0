"""
Library models - reusable billable services and materials.
"""

from decimal import Decimal

from django.db import models

from apps.core.models import UserScopedModel


class LibraryItem(UserScopedModel):
    """
    A saved service or material that can be dropped into quotes and invoices.

    Deleting from the API only deactivates the item so existing documents
    that copied it stay meaningful.
    """

    class ItemType(models.TextChoices):
        SERVICE = "service", "Service"
        MATERIAL = "material", "Material"

    item_name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    unit = models.CharField(max_length=50, blank=True, help_text="e.g. 'hour', 'sq ft', 'each'")
    type = models.CharField(max_length=20, choices=ItemType.choices, default=ItemType.SERVICE)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "library_items"
        ordering = ["item_name"]

    def __str__(self) -> str:
        return self.item_name
