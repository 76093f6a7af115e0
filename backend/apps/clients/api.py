"""
Clients API endpoints.
"""

from uuid import UUID

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.clients.models import Client
from apps.clients.schemas import ClientCreateRequest, ClientResponse, ClientUpdateRequest
from apps.clients.services import (
    create_client,
    delete_client,
    get_client,
    list_clients,
    update_client,
)
from apps.core.auth import require_user
from apps.core.schemas import ErrorResponse, SuccessResponse
from apps.core.security import bearer_auth

router = Router(tags=["clients"])


def _get_owned_client(request: HttpRequest, client_id: UUID) -> Client:
    client = get_client(require_user(request), client_id)
    if client is None:
        raise HttpError(404, "Client not found")
    return client


@router.get(
    "",
    response={200: list[ClientResponse], 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="listClients",
    summary="List clients",
)
def list_clients_endpoint(request: HttpRequest) -> list[Client]:
    """List the caller's clients ordered by name."""
    return list_clients(require_user(request))


@router.post(
    "",
    response={201: ClientResponse, 400: ErrorResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="createClient",
    summary="Create client",
)
def create_client_endpoint(
    request: HttpRequest, payload: ClientCreateRequest
) -> tuple[int, Client]:
    user = require_user(request)
    return 201, create_client(user, **payload.model_dump())


@router.get(
    "/{client_id}",
    response={200: ClientResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="getClient",
    summary="Get client",
)
def get_client_endpoint(request: HttpRequest, client_id: UUID) -> Client:
    return _get_owned_client(request, client_id)


@router.patch(
    "/{client_id}",
    response={200: ClientResponse, 400: ErrorResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="updateClient",
    summary="Update client",
)
def update_client_endpoint(
    request: HttpRequest, client_id: UUID, payload: ClientUpdateRequest
) -> Client:
    client = _get_owned_client(request, client_id)
    return update_client(client, **payload.model_dump(exclude_unset=True, exclude_none=True))


@router.delete(
    "/{client_id}",
    response={200: SuccessResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="deleteClient",
    summary="Delete client",
)
def delete_client_endpoint(request: HttpRequest, client_id: UUID) -> SuccessResponse:
    delete_client(_get_owned_client(request, client_id))
    return SuccessResponse()
