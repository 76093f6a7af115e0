"""
Tests for account services.
"""

import uuid

import pytest

from apps.accounts.models import UserProfile
from apps.accounts.services import get_or_create_profile
from apps.accounts.supabase_client import SessionUser
from tests.accounts.factories import UserProfileFactory


@pytest.mark.django_db
class TestGetOrCreateProfile:
    def test_creates_profile_with_supabase_id(self) -> None:
        user_id = str(uuid.uuid4())

        profile = get_or_create_profile(
            SessionUser(id=user_id, email="new@example.com", full_name="New User")
        )

        profile.refresh_from_db()
        assert str(profile.id) == user_id
        assert profile.email == "new@example.com"
        assert profile.full_name == "New User"

    def test_returns_existing_profile(self) -> None:
        existing = UserProfileFactory.create(email="same@example.com", full_name="Same")

        profile = get_or_create_profile(
            SessionUser(id=str(existing.id), email="same@example.com", full_name="Same")
        )

        assert profile.pk == existing.pk
        assert UserProfile.objects.count() == 1

    def test_refreshes_changed_email_and_name(self) -> None:
        existing = UserProfileFactory.create(email="old@example.com", full_name="Old")

        get_or_create_profile(
            SessionUser(id=str(existing.id), email="new@example.com", full_name="New")
        )

        existing.refresh_from_db()
        assert existing.email == "new@example.com"
        assert existing.full_name == "New"

    def test_blank_name_does_not_overwrite(self) -> None:
        existing = UserProfileFactory.create(full_name="Kept Name")

        get_or_create_profile(SessionUser(id=str(existing.id), email=existing.email))

        existing.refresh_from_db()
        assert existing.full_name == "Kept Name"
