"""
Quote services.
"""

from collections.abc import Iterable, Mapping
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
from apps.invoices.models import Invoice
from apps.invoices.services import create_invoice
from apps.quotes.models import Quote, QuoteItem

logger = get_logger(__name__)

QUOTE_NUMBER_PREFIX = "Q"


class QuoteAlreadyConvertedError(Exception):
    """Raised when converting a quote that already has an invoice."""


def list_quotes(user: UserProfile) -> list[Quote]:
    return list(Quote.objects.filter(user=user).prefetch_related("items").order_by("-created_at"))


def get_quote(user: UserProfile, quote_id: UUID) -> Quote | None:
    return Quote.objects.filter(user=user, id=quote_id).prefetch_related("items").first()


def view_public_quote(public_token: UUID) -> Quote | None:
    """
    Look up a quote through its share link.

    A quote in ``sent`` status becomes ``viewed``; other statuses are left alone.
    """
    updated = Quote.objects.filter(public_token=public_token, status=Quote.Status.SENT).update(
        status=Quote.Status.VIEWED, updated_at=timezone.now()
    )
    quote = Quote.objects.filter(public_token=public_token).prefetch_related("items").first()
    if updated and quote is not None:
        logger.info("quote_viewed", quote_id=str(quote.id))
    return quote


def create_quote(
    user: UserProfile,
    items: Iterable[Mapping[str, Any]] = (),
    **fields,
) -> Quote:
    with transaction.atomic():
        UserProfile.objects.select_for_update().get(pk=user.pk)
        quotes = Quote.objects.filter(user=user)
        if fields.get("quote_number"):
            ensure_number_available(quotes, "quote_number", fields["quote_number"])
        else:
            fields["quote_number"] = next_document_number(
                quotes, "quote_number", QUOTE_NUMBER_PREFIX
            )
        if fields.get("issue_date") is None:
            fields.pop("issue_date", None)

        quote = Quote.objects.create(user=user, **fields)
        replace_line_items(quote, QuoteItem, "quote", items)
        refresh_totals(quote)

    logger.info("quote_created", quote_id=str(quote.id), user_id=str(user.id))
    return quote


def update_quote(
    quote: Quote,
    items: Iterable[Mapping[str, Any]] | None = None,
    **changes,
) -> Quote:
    with transaction.atomic():
        if changes.get("quote_number"):
            ensure_number_available(
                Quote.objects.filter(user=quote.user),
                "quote_number",
                changes["quote_number"],
                exclude_id=quote.id,
            )
        for field, value in changes.items():
            setattr(quote, field, value)
        quote.save()

        if items is not None:
            replace_line_items(quote, QuoteItem, "quote", items)
        refresh_totals(quote)

    return get_quote(quote.user, quote.id)


def delete_quote(quote: Quote) -> None:
    quote_id = str(quote.id)
    quote.delete()
    logger.info("quote_deleted", quote_id=quote_id)


def convert_quote_to_invoice(quote: Quote) -> Invoice:
    """
    Create an invoice from a quote and mark the quote accepted.

    Copies client, contact details, project, tax rate, notes and line items.

    Raises:
        QuoteAlreadyConvertedError: If the quote already has an invoice
    """
    with transaction.atomic():
        locked = Quote.objects.select_for_update().get(id=quote.id)
        if locked.is_converted:
            raise QuoteAlreadyConvertedError(f"Quote {locked.id} was already converted")

        invoice = create_invoice(
            locked.user,
            items=[
                {
                    "description": item.description,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                }
                for item in locked.items.all()
            ],
            client=locked.client,
            customer_name=locked.client_name,
            customer_email=locked.client_email,
            customer_phone=locked.client_phone,
            project_name=locked.project_name,
            tax_rate=locked.tax_rate,
            notes=locked.notes,
        )

        locked.converted_invoice = invoice
        locked.status = Quote.Status.ACCEPTED
        locked.save(update_fields=["converted_invoice", "status", "updated_at"])

    logger.info("quote_converted", quote_id=str(locked.id), invoice_id=str(invoice.id))
    return invoice
