"""
Helpers shared by the invoice and quote services.
"""

from collections.abc import Iterable, Mapping
from typing import Any
from uuid import UUID

from django.db.models import Model, QuerySet

from apps.core.pricing import compute_totals, line_amount


class DocumentNumberTakenError(Exception):
    """Raised when a document number is already used by another of the user's documents."""


def next_document_number(documents: QuerySet, field: str, prefix: str) -> str:
    """
    Next sequential number for a user's documents, e.g. 'INV-0007'.

    One more than the highest existing ``{prefix}-NNNN`` number, so deleting
    an older document never frees a number that is still in use.
    ``documents`` must already be filtered to one user, and concurrent
    callers must hold that user's row lock.
    """
    highest = 0
    numbers = documents.filter(**{f"{field}__startswith": f"{prefix}-"}).values_list(
        field, flat=True
    )
    for number in numbers:
        suffix = number[len(prefix) + 1 :]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}-{highest + 1:04d}"


def ensure_number_available(
    documents: QuerySet, field: str, number: str, exclude_id: UUID | None = None
) -> None:
    """
    Raise DocumentNumberTakenError if ``number`` is used by another document.

    ``documents`` must already be filtered to one user.
    """
    taken = documents.filter(**{field: number})
    if exclude_id is not None:
        taken = taken.exclude(id=exclude_id)
    if taken.exists():
        raise DocumentNumberTakenError(f"{number} is already in use")


def replace_line_items(
    document: Model,
    item_model: type[Model],
    parent_field: str,
    items: Iterable[Mapping[str, Any]],
) -> list[Model]:
    """Delete a document's line items and create the given ones."""
    item_model.objects.filter(**{parent_field: document}).delete()
    rows = [
        item_model(
            **{parent_field: document},
            description=item["description"],
            quantity=item["quantity"],
            unit_price=item["unit_price"],
            amount=line_amount(item["quantity"], item["unit_price"]),
            position=position,
        )
        for position, item in enumerate(items)
    ]
    return item_model.objects.bulk_create(rows)


def refresh_totals(document: Model) -> None:
    """Recompute subtotal, tax and total from the document's saved items."""
    totals = compute_totals(
        document.items.values_list("amount", flat=True),
        document.tax_rate,
    )
    document.subtotal = totals.subtotal
    document.tax_amount = totals.tax_amount
    document.total_amount = totals.total_amount
    document.save(update_fields=["subtotal", "tax_amount", "total_amount", "updated_at"])
