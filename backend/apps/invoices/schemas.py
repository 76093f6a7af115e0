"""
Invoices API schemas.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from ninja import Schema
from pydantic import Field

InvoiceStatus = Literal["outstanding", "paid", "overdue"]


class LineItemRequest(Schema):
    description: str = Field(min_length=1)
    quantity: Decimal = Field(default=Decimal("1"), ge=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)


class LineItemResponse(Schema):
    id: UUID
    description: str
    quantity: float
    unit_price: float
    amount: float


class InvoiceCreateRequest(Schema):
    customer_name: str = Field(min_length=1)
    customer_email: str = ""
    customer_phone: str = ""
    project_name: str = ""
    client_id: UUID | None = None
    invoice_number: str | None = None
    issue_date: date | None = None
    due_date: date | None = None
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0)
    notes: str = ""
    items: list[LineItemRequest] = []


class InvoiceUpdateRequest(Schema):
    """Partial update. When ``items`` is sent the line items are replaced."""

    customer_name: str | None = Field(default=None, min_length=1)
    customer_email: str | None = None
    customer_phone: str | None = None
    project_name: str | None = None
    client_id: UUID | None = None
    invoice_number: str | None = None
    issue_date: date | None = None
    due_date: date | None = None
    status: InvoiceStatus | None = None
    paid_date: date | None = None
    tax_rate: Decimal | None = Field(default=None, ge=0)
    notes: str | None = None
    items: list[LineItemRequest] | None = None


class InvoiceResponse(Schema):
    id: UUID
    user_id: UUID
    client_id: UUID | None
    invoice_number: str
    customer_name: str
    customer_email: str
    customer_phone: str
    project_name: str
    issue_date: date
    due_date: date | None
    status: str
    subtotal: float
    tax_rate: float
    tax_amount: float
    total_amount: float
    notes: str
    public_token: UUID
    stripe_invoice_id: str
    paid_date: date | None
    items: list[LineItemResponse]
    created_at: datetime
    updated_at: datetime

    @staticmethod
    def resolve_items(obj) -> list:
        return list(obj.items.all())
