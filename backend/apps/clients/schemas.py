"""
Clients API schemas.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from ninja import Schema

ClientType = Literal["residential", "commercial"]


class ClientCreateRequest(Schema):
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    client_type: ClientType = "residential"
    notes: str = ""


class ClientUpdateRequest(Schema):
    """Partial update; only fields present in the body are changed."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    client_type: ClientType | None = None
    notes: str | None = None


class ClientResponse(Schema):
    id: UUID
    user_id: UUID
    name: str
    email: str
    phone: str
    address: str
    client_type: str
    notes: str
    created_at: datetime
    updated_at: datetime
