"""
Invoices API endpoints.
"""

from uuid import UUID

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.accounts.models import UserProfile
from apps.billing.exceptions import PlanLimitExceededError
from apps.billing.services import get_subscription_service
from apps.clients.models import Client
from apps.clients.services import get_client
from apps.core.auth import require_user
from apps.core.documents import DocumentNumberTakenError
from apps.core.schemas import ErrorResponse, SuccessResponse
from apps.core.security import bearer_auth
from apps.invoices.models import Invoice
from apps.invoices.schemas import InvoiceCreateRequest, InvoiceResponse, InvoiceUpdateRequest
from apps.invoices.services import (
    create_invoice,
    delete_invoice,
    get_invoice,
    list_invoices,
    update_invoice,
)

router = Router(tags=["invoices"])

INVOICES_FEATURE = "invoices"

# PATCH may set these to null; other fields ignore an explicit null
NULLABLE_FIELDS = {"due_date", "paid_date"}


def _get_owned_invoice(request: HttpRequest, invoice_id: UUID) -> Invoice:
    invoice = get_invoice(require_user(request), invoice_id)
    if invoice is None:
        raise HttpError(404, "Invoice not found")
    return invoice


def ensure_invoice_allowance(user: UserProfile) -> None:
    """Raise 403 when the caller's plan has used up its invoice allowance."""
    try:
        get_subscription_service().check_usage_limit(user, INVOICES_FEATURE)
    except PlanLimitExceededError as e:
        raise HttpError(403, str(e)) from e


def count_invoice_usage(user: UserProfile) -> None:
    service = get_subscription_service()
    subscription = service.get_subscription(user)
    if subscription is not None:
        service.update_usage(subscription.id, INVOICES_FEATURE)


def resolve_client(user: UserProfile, client_id: UUID | None) -> Client | None:
    if client_id is None:
        return None
    client = get_client(user, client_id)
    if client is None:
        raise HttpError(400, "Unknown client_id")
    return client


@router.get(
    "",
    response={200: list[InvoiceResponse], 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="listInvoices",
    summary="List invoices",
)
def list_invoices_endpoint(request: HttpRequest) -> list[Invoice]:
    """List the caller's invoices, newest first, with their line items."""
    return list_invoices(require_user(request))


@router.post(
    "",
    response={
        201: InvoiceResponse,
        400: ErrorResponse,
        401: ErrorResponse,
        403: ErrorResponse,
    },
    auth=bearer_auth,
    operation_id="createInvoice",
    summary="Create invoice",
)
def create_invoice_endpoint(
    request: HttpRequest, payload: InvoiceCreateRequest
) -> tuple[int, Invoice]:
    """
    Create an invoice with line items.

    Counts against the plan's invoice allowance when the caller has a
    subscription; an exhausted allowance answers 403.
    """
    user = require_user(request)
    ensure_invoice_allowance(user)

    data = payload.model_dump(exclude={"items", "client_id"})
    try:
        invoice = create_invoice(
            user,
            items=[item.model_dump() for item in payload.items],
            client=resolve_client(user, payload.client_id),
            **data,
        )
    except DocumentNumberTakenError as e:
        raise HttpError(400, "Invoice number already in use") from e

    count_invoice_usage(user)
    return 201, get_invoice(user, invoice.id)


@router.get(
    "/{invoice_id}",
    response={200: InvoiceResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="getInvoice",
    summary="Get invoice",
)
def get_invoice_endpoint(request: HttpRequest, invoice_id: UUID) -> Invoice:
    return _get_owned_invoice(request, invoice_id)


@router.patch(
    "/{invoice_id}",
    response={200: InvoiceResponse, 400: ErrorResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="updateInvoice",
    summary="Update invoice",
)
def update_invoice_endpoint(
    request: HttpRequest, invoice_id: UUID, payload: InvoiceUpdateRequest
) -> Invoice:
    invoice = _get_owned_invoice(request, invoice_id)
    changes = payload.model_dump(exclude_unset=True, exclude={"items", "client_id"})
    changes = {
        field: value
        for field, value in changes.items()
        if value is not None or field in NULLABLE_FIELDS
    }

    if "client_id" in payload.model_fields_set:
        changes["client"] = resolve_client(invoice.user, payload.client_id)

    items = None
    if payload.items is not None:
        items = [item.model_dump() for item in payload.items]

    try:
        return update_invoice(invoice, items=items, **changes)
    except DocumentNumberTakenError as e:
        raise HttpError(400, "Invoice number already in use") from e


@router.delete(
    "/{invoice_id}",
    response={200: SuccessResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="deleteInvoice",
    summary="Delete invoice",
)
def delete_invoice_endpoint(request: HttpRequest, invoice_id: UUID) -> SuccessResponse:
    delete_invoice(_get_owned_invoice(request, invoice_id))
    return SuccessResponse()
