"""
Library item services. Every lookup is scoped to the owning user.
"""

from uuid import UUID

from apps.accounts.models import UserProfile
from apps.library.models import LibraryItem


def list_items(user: UserProfile, item_type: str | None = None) -> list[LibraryItem]:
    """Active items for the user, ordered by name, optionally filtered by type."""
    items = LibraryItem.objects.filter(user=user, is_active=True)
    if item_type:
        items = items.filter(type=item_type)
    return list(items.order_by("item_name"))


def get_item(user: UserProfile, item_id: UUID) -> LibraryItem | None:
    return LibraryItem.objects.filter(user=user, id=item_id, is_active=True).first()


def create_item(user: UserProfile, **fields) -> LibraryItem:
    return LibraryItem.objects.create(user=user, **fields)


def update_item(item: LibraryItem, **changes) -> LibraryItem:
    for field, value in changes.items():
        setattr(item, field, value)
    item.save()
    return item


def deactivate_item(item: LibraryItem) -> None:
    item.is_active = False
    item.save(update_fields=["is_active", "updated_at"])
