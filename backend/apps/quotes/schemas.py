"""
Quotes API schemas.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from ninja import Schema
from pydantic import Field

from apps.invoices.schemas import LineItemRequest, LineItemResponse

QuoteStatus = Literal["draft", "sent", "viewed", "accepted", "rejected"]


class QuoteCreateRequest(Schema):
    client_name: str = Field(min_length=1)
    client_email: str = ""
    client_phone: str = ""
    project_name: str = ""
    client_id: UUID | None = None
    quote_number: str | None = None
    issue_date: date | None = None
    valid_until: date | None = None
    status: QuoteStatus = "draft"
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0)
    notes: str = ""
    items: list[LineItemRequest] = []


class QuoteUpdateRequest(Schema):
    """Partial update. When ``items`` is sent the line items are replaced."""

    client_name: str | None = Field(default=None, min_length=1)
    client_email: str | None = None
    client_phone: str | None = None
    project_name: str | None = None
    client_id: UUID | None = None
    quote_number: str | None = None
    issue_date: date | None = None
    valid_until: date | None = None
    status: QuoteStatus | None = None
    tax_rate: Decimal | None = Field(default=None, ge=0)
    notes: str | None = None
    items: list[LineItemRequest] | None = None


class QuoteResponse(Schema):
    id: UUID
    user_id: UUID
    client_id: UUID | None
    quote_number: str
    client_name: str
    client_email: str
    client_phone: str
    project_name: str
    issue_date: date
    valid_until: date | None
    status: str
    subtotal: float
    tax_rate: float
    tax_amount: float
    total_amount: float
    notes: str
    public_token: UUID
    converted_invoice_id: UUID | None
    items: list[LineItemResponse]
    created_at: datetime
    updated_at: datetime

    @staticmethod
    def resolve_items(obj) -> list:
        return list(obj.items.all())


class PublicQuoteResponse(Schema):
    """What a quote's recipient sees through the share link."""

    quote_number: str
    client_name: str
    project_name: str
    issue_date: date
    valid_until: date | None
    status: str
    subtotal: float
    tax_rate: float
    tax_amount: float
    total_amount: float
    notes: str
    items: list[LineItemResponse]

    @staticmethod
    def resolve_items(obj) -> list:
        return list(obj.items.all())
