"""
Quote models - estimates that can be shared and converted into invoices.
"""

import uuid
from datetime import date
from decimal import Decimal

from django.db import models

from apps.core.models import LineItemModel, UserScopedModel


class Quote(UserScopedModel):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        VIEWED = "viewed", "Viewed"
        ACCEPTED = "accepted", "Accepted"
        REJECTED = "rejected", "Rejected"

    client = models.ForeignKey(
        "clients.Client",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="quotes",
    )
    quote_number = models.CharField(max_length=50, blank=True)
    client_name = models.CharField(max_length=255)
    client_email = models.EmailField(blank=True)
    client_phone = models.CharField(max_length=50, blank=True)
    project_name = models.CharField(max_length=255, blank=True)
    issue_date = models.DateField(default=date.today)
    valid_until = models.DateField(null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.DRAFT,
    )
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0"),
        help_text="Percentage, e.g. 8.25",
    )
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    notes = models.TextField(blank=True)
    public_token = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    converted_invoice = models.OneToOneField(
        "invoices.Invoice",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="source_quote",
        help_text="Invoice created from this quote",
    )

    class Meta:
        db_table = "quotes"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "quote_number"],
                condition=~models.Q(quote_number=""),
                name="unique_quote_number_per_user",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.quote_number or self.id} ({self.client_name})"

    @property
    def is_converted(self) -> bool:
        return self.converted_invoice_id is not None


class QuoteItem(LineItemModel):
    quote = models.ForeignKey(Quote, on_delete=models.CASCADE, related_name="items")

    class Meta:
        db_table = "quote_items"
        ordering = ["position"]
