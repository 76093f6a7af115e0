"""
Factories for library app models.
"""

from decimal import Decimal

import factory
from factory.django import DjangoModelFactory

from apps.library.models import LibraryItem
from tests.accounts.factories import UserProfileFactory


class LibraryItemFactory(DjangoModelFactory):
    class Meta:
        model = LibraryItem

    user = factory.SubFactory(UserProfileFactory)
    item_name = factory.Sequence(lambda n: f"Item {n}")
    unit_price = Decimal("25.00")
    unit = "hour"
    type = LibraryItem.ItemType.SERVICE
