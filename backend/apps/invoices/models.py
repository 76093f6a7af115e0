"""
Invoice models.
"""

import uuid
from datetime import date
from decimal import Decimal

from django.db import models

from apps.core.models import LineItemModel, UserScopedModel


class Invoice(UserScopedModel):
    """
    An invoice sent to a customer.

    Totals are derived from the line items, see apps.core.documents.refresh_totals.
    """

    class Status(models.TextChoices):
        OUTSTANDING = "outstanding", "Outstanding"
        PAID = "paid", "Paid"
        OVERDUE = "overdue", "Overdue"

    client = models.ForeignKey(
        "clients.Client",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invoices",
    )
    invoice_number = models.CharField(max_length=50, blank=True)
    customer_name = models.CharField(max_length=255)
    customer_email = models.EmailField(blank=True)
    customer_phone = models.CharField(max_length=50, blank=True)
    project_name = models.CharField(max_length=255, blank=True)
    issue_date = models.DateField(default=date.today)
    due_date = models.DateField(null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.OUTSTANDING,
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
    stripe_invoice_id = models.CharField(max_length=255, blank=True)
    paid_date = models.DateField(null=True, blank=True)

    class Meta:
        db_table = "invoices"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "invoice_number"],
                condition=~models.Q(invoice_number=""),
                name="unique_invoice_number_per_user",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.invoice_number or self.id} ({self.customer_name})"


class InvoiceItem(LineItemModel):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="items")

    class Meta:
        db_table = "invoice_items"
        ordering = ["position"]
