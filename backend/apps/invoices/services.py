"""
Invoice services.

Line items and the parent's totals are rewritten in one transaction.
"""

from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from apps.accounts.models import UserProfile
from apps.core.documents import (
    ensure_number_available,
    next_document_number,
    refresh_totals,
    replace_line_items,
)
from apps.core.logging import get_logger
from apps.invoices.models import Invoice, InvoiceItem

logger = get_logger(__name__)

INVOICE_NUMBER_PREFIX = "INV"


def list_invoices(user: UserProfile) -> list[Invoice]:
    """The user's invoices, newest first, with items prefetched."""
    return list(
        Invoice.objects.filter(user=user).prefetch_related("items").order_by("-created_at")
    )


def get_invoice(user: UserProfile, invoice_id: UUID) -> Invoice | None:
    return Invoice.objects.filter(user=user, id=invoice_id).prefetch_related("items").first()


def create_invoice(
    user: UserProfile,
    items: Iterable[Mapping[str, Any]] = (),
    **fields,
) -> Invoice:
    """
    Create an invoice with its line items and computed totals.

    Args:
        user: Owner of the invoice
        items: Mappings with description, quantity and unit_price
        **fields: Invoice columns (customer_name is required)

    Returns:
        The saved invoice

    Raises:
        DocumentNumberTakenError: If an explicit invoice_number is already used
    """
    with transaction.atomic():
        # Numbering is serialized per user on the profile row
        UserProfile.objects.select_for_update().get(pk=user.pk)
        invoices = Invoice.objects.filter(user=user)
        if fields.get("invoice_number"):
            ensure_number_available(invoices, "invoice_number", fields["invoice_number"])
        else:
            fields["invoice_number"] = next_document_number(
                invoices, "invoice_number", INVOICE_NUMBER_PREFIX
            )
        if fields.get("issue_date") is None:
            fields.pop("issue_date", None)

        invoice = Invoice.objects.create(user=user, **fields)
        replace_line_items(invoice, InvoiceItem, "invoice", items)
        refresh_totals(invoice)

    logger.info(
        "invoice_created",
        invoice_id=str(invoice.id),
        user_id=str(user.id),
        total_amount=str(invoice.total_amount),
    )
    return invoice


def update_invoice(
    invoice: Invoice,
    items: Iterable[Mapping[str, Any]] | None = None,
    **changes,
) -> Invoice:
    """Apply a partial update; replaces the line items when ``items`` is given."""
    if changes.get("status") == Invoice.Status.PAID and not changes.get("paid_date"):
        changes["paid_date"] = invoice.paid_date or date.today()

    with transaction.atomic():
        if changes.get("invoice_number"):
            ensure_number_available(
                Invoice.objects.filter(user=invoice.user),
                "invoice_number",
                changes["invoice_number"],
                exclude_id=invoice.id,
            )
        for field, value in changes.items():
            setattr(invoice, field, value)
        invoice.save()

        if items is not None:
            replace_line_items(invoice, InvoiceItem, "invoice", items)
        refresh_totals(invoice)

    return get_invoice(invoice.user, invoice.id)


def delete_invoice(invoice: Invoice) -> None:
    invoice_id = str(invoice.id)
    invoice.delete()
    logger.info("invoice_deleted", invoice_id=invoice_id)


def set_invoice_status(invoice_id: str, status: str) -> bool:
    """
    Set the status of an invoice referenced by a billing event.

    Returns False when no invoice has that id.
    """
    try:
        invoice_uuid = UUID(str(invoice_id))
    except ValueError:
        logger.warning("invoice_status_target_invalid", invoice_id=invoice_id, status=status)
        return False

    changes: dict[str, Any] = {"status": status, "updated_at": timezone.now()}
    if status == Invoice.Status.PAID:
        changes["paid_date"] = date.today()

    updated = Invoice.objects.filter(id=invoice_uuid).update(**changes)
    if not updated:
        logger.warning("invoice_status_target_missing", invoice_id=invoice_id, status=status)
        return False

    logger.info("invoice_status_updated", invoice_id=invoice_id, status=status)
    return True
