"""
Client services. Every lookup is scoped to the owning user.
"""

from uuid import UUID

from apps.accounts.models import UserProfile
from apps.clients.models import Client
from apps.core.logging import get_logger

logger = get_logger(__name__)


def list_clients(user: UserProfile) -> list[Client]:
    return list(Client.objects.filter(user=user).order_by("name"))


def get_client(user: UserProfile, client_id: UUID) -> Client | None:
    """Return the user's client, or None if it does not exist or belongs to someone else."""
    return Client.objects.filter(user=user, id=client_id).first()


def create_client(user: UserProfile, **fields) -> Client:
    client = Client.objects.create(user=user, **fields)
    logger.info("client_created", client_id=str(client.id), user_id=str(user.id))
    return client


def update_client(client: Client, **changes) -> Client:
    for field, value in changes.items():
        setattr(client, field, value)
    client.save()
    return client


def delete_client(client: Client) -> None:
    client_id = str(client.id)
    client.delete()
    logger.info("client_deleted", client_id=client_id)
