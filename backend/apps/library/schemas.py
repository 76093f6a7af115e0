"""
Library API schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from ninja import Schema
from pydantic import Field

ItemType = Literal["service", "material"]


class LibraryItemCreateRequest(Schema):
    item_name: str
    description: str = ""
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    unit: str = ""
    type: ItemType = "service"


class LibraryItemUpdateRequest(Schema):
    item_name: str | None = None
    description: str | None = None
    unit_price: Decimal | None = Field(default=None, ge=0)
    unit: str | None = None
    type: ItemType | None = None


class LibraryItemResponse(Schema):
    id: UUID
    user_id: UUID
    item_name: str
    description: str
    unit_price: float
    unit: str
    type: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
