"""
Quotes API endpoints.

``router`` holds the authenticated CRUD endpoints; ``public_router`` serves
the share link a quote's recipient opens without logging in.
"""

from uuid import UUID

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.core.auth import require_user
from apps.core.documents import DocumentNumberTakenError
from apps.core.schemas import ErrorResponse, SuccessResponse
from apps.core.security import bearer_auth
from apps.invoices.api import count_invoice_usage, ensure_invoice_allowance, resolve_client
from apps.invoices.models import Invoice
from apps.invoices.schemas import InvoiceResponse
from apps.invoices.services import get_invoice
from apps.quotes.models import Quote
from apps.quotes.schemas import (
    PublicQuoteResponse,
    QuoteCreateRequest,
    QuoteResponse,
    QuoteUpdateRequest,
)
from apps.quotes.services import (
    QuoteAlreadyConvertedError,
    convert_quote_to_invoice,
    create_quote,
    delete_quote,
    get_quote,
    list_quotes,
    update_quote,
    view_public_quote,
)

router = Router(tags=["quotes"])
public_router = Router(tags=["public"])

# PATCH may set these to null; other fields ignore an explicit null
NULLABLE_FIELDS = {"valid_until"}


def _get_owned_quote(request: HttpRequest, quote_id: UUID) -> Quote:
    quote = get_quote(require_user(request), quote_id)
    if quote is None:
        raise HttpError(404, "Quote not found")
    return quote


@router.get(
    "",
    response={200: list[QuoteResponse], 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="listQuotes",
    summary="List quotes",
)
def list_quotes_endpoint(request: HttpRequest) -> list[Quote]:
    return list_quotes(require_user(request))


@router.post(
    "",
    response={201: QuoteResponse, 400: ErrorResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="createQuote",
    summary="Create quote",
)
def create_quote_endpoint(request: HttpRequest, payload: QuoteCreateRequest) -> tuple[int, Quote]:
    user = require_user(request)
    try:
        quote = create_quote(
            user,
            items=[item.model_dump() for item in payload.items],
            client=resolve_client(user, payload.client_id),
            **payload.model_dump(exclude={"items", "client_id"}),
        )
    except DocumentNumberTakenError as e:
        raise HttpError(400, "Quote number already in use") from e
    return 201, get_quote(user, quote.id)


@router.get(
    "/{quote_id}",
    response={200: QuoteResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="getQuote",
    summary="Get quote",
)
def get_quote_endpoint(request: HttpRequest, quote_id: UUID) -> Quote:
    return _get_owned_quote(request, quote_id)


@router.patch(
    "/{quote_id}",
    response={200: QuoteResponse, 400: ErrorResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="updateQuote",
    summary="Update quote",
)
def update_quote_endpoint(
    request: HttpRequest, quote_id: UUID, payload: QuoteUpdateRequest
) -> Quote:
    quote = _get_owned_quote(request, quote_id)
    changes = payload.model_dump(exclude_unset=True, exclude={"items", "client_id"})
    changes = {
        field: value
        for field, value in changes.items()
        if value is not None or field in NULLABLE_FIELDS
    }

    if "client_id" in payload.model_fields_set:
        changes["client"] = resolve_client(quote.user, payload.client_id)

    items = None
    if payload.items is not None:
        items = [item.model_dump() for item in payload.items]

    try:
        return update_quote(quote, items=items, **changes)
    except DocumentNumberTakenError as e:
        raise HttpError(400, "Quote number already in use") from e


@router.delete(
    "/{quote_id}",
    response={200: SuccessResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="deleteQuote",
    summary="Delete quote",
)
def delete_quote_endpoint(request: HttpRequest, quote_id: UUID) -> SuccessResponse:
    delete_quote(_get_owned_quote(request, quote_id))
    return SuccessResponse()


@router.post(
    "/{quote_id}/convert",
    response={
        201: InvoiceResponse,
        400: ErrorResponse,
        401: ErrorResponse,
        403: ErrorResponse,
        404: ErrorResponse,
    },
    auth=bearer_auth,
    operation_id="convertQuote",
    summary="Convert quote to invoice",
)
def convert_quote_endpoint(request: HttpRequest, quote_id: UUID) -> tuple[int, Invoice]:
    """
    Turn a quote into an invoice and mark the quote accepted.

    The new invoice counts against the plan's invoice allowance.
    """
    quote = _get_owned_quote(request, quote_id)
    ensure_invoice_allowance(quote.user)

    try:
        invoice = convert_quote_to_invoice(quote)
    except QuoteAlreadyConvertedError as e:
        raise HttpError(400, "Quote has already been converted") from e

    count_invoice_usage(quote.user)
    return 201, get_invoice(quote.user, invoice.id)


@public_router.get(
    "/quotes/{public_token}",
    response={200: PublicQuoteResponse, 404: ErrorResponse},
    auth=None,
    operation_id="getPublicQuote",
    summary="View shared quote",
)
def public_quote_endpoint(request: HttpRequest, public_token: UUID) -> Quote:
    quote = view_public_quote(public_token)
    if quote is None:
        raise HttpError(404, "Quote not found")
    return quote
