"""
Library API endpoints - saved services and materials.
"""

from typing import Literal
from uuid import UUID

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.core.auth import require_user
from apps.core.schemas import ErrorResponse, SuccessResponse
from apps.core.security import bearer_auth
from apps.library.models import LibraryItem
from apps.library.schemas import (
    LibraryItemCreateRequest,
    LibraryItemResponse,
    LibraryItemUpdateRequest,
)
from apps.library.services import (
    create_item,
    deactivate_item,
    get_item,
    list_items,
    update_item,
)

router = Router(tags=["library"])


def _get_owned_item(request: HttpRequest, item_id: UUID) -> LibraryItem:
    item = get_item(require_user(request), item_id)
    if item is None:
        raise HttpError(404, "Item not found")
    return item


@router.get(
    "",
    response={200: list[LibraryItemResponse], 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="listLibraryItems",
    summary="List library items",
)
def list_items_endpoint(
    request: HttpRequest, type: Literal["service", "material"] | None = None
) -> list[LibraryItem]:
    """List active library items, optionally only services or only materials."""
    return list_items(require_user(request), item_type=type)


@router.post(
    "",
    response={201: LibraryItemResponse, 400: ErrorResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="createLibraryItem",
    summary="Create library item",
)
def create_item_endpoint(
    request: HttpRequest, payload: LibraryItemCreateRequest
) -> tuple[int, LibraryItem]:
    return 201, create_item(require_user(request), **payload.model_dump())


@router.patch(
    "/{item_id}",
    response={200: LibraryItemResponse, 400: ErrorResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="updateLibraryItem",
    summary="Update library item",
)
def update_item_endpoint(
    request: HttpRequest, item_id: UUID, payload: LibraryItemUpdateRequest
) -> LibraryItem:
    item = _get_owned_item(request, item_id)
    return update_item(item, **payload.model_dump(exclude_unset=True, exclude_none=True))


@router.delete(
    "/{item_id}",
    response={200: SuccessResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="deleteLibraryItem",
    summary="Deactivate library item",
)
def delete_item_endpoint(request: HttpRequest, item_id: UUID) -> SuccessResponse:
    deactivate_item(_get_owned_item(request, item_id))
    return SuccessResponse()
