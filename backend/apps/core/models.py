"""
Core models - shared base classes and utilities.
"""

import uuid
from decimal import Decimal

from django.db import models

from apps.core.pricing import line_amount


class TimestampedModel(models.Model):
    """
    Abstract base model with created_at/updated_at timestamps.

    All business entities should inherit from this or UserScopedModel.
    """

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class UserScopedModel(TimestampedModel):
    """
    Abstract base model for entities owned by a single user.

    Provides:
    - UUID primary key
    - user FK (stored as user_id)
    - Timestamps from TimestampedModel

    Every query against a subclass from the API must filter on the
    authenticated user.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        "accounts.UserProfile",
        on_delete=models.CASCADE,
        related_name="%(class)s_set",
    )

    class Meta:
        abstract = True


class ProcessedWebhook(models.Model):
    """
    Record of a webhook event that was applied successfully.

    Used to acknowledge redelivered events without reprocessing them.
    """

    source = models.CharField(max_length=50, help_text="Webhook provider, e.g. 'stripe'")
    event_id = models.CharField(max_length=255, help_text="Provider event ID, e.g. 'evt_xxx'")
    event_type = models.CharField(max_length=100, blank=True)
    processed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "processed_webhooks"
        ordering = ["-processed_at"]
        constraints = [
            models.UniqueConstraint(fields=["source", "event_id"], name="unique_webhook_event"),
        ]

    def __str__(self) -> str:
        return f"{self.source}:{self.event_id}"


class LineItemModel(models.Model):
    """
    Abstract base for invoice and quote line items.

    ``amount`` is always quantity x unit_price, recomputed on save.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    description = models.CharField(max_length=500)
    quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("1"))
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    position = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        self.amount = line_amount(self.quantity, self.unit_price)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.description} ({self.quantity} x {self.unit_price})"
