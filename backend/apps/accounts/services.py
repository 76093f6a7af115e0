"""
Account services - sync between Supabase Auth and local UserProfile rows.
"""

from django.db import IntegrityError, transaction

from apps.accounts.models import UserProfile
from apps.accounts.supabase_client import SessionUser


def get_or_create_profile(session_user: SessionUser) -> UserProfile:
    """
    Get or create the UserProfile for an authenticated Supabase user.

    Called on every authenticated request. Email and name are refreshed
    only when they changed, so the common path is a single SELECT.

    Uses select_for_update for explicit row locking under concurrent requests.
    """
    with transaction.atomic():
        try:
            profile = UserProfile.objects.select_for_update().get(id=session_user.id)
        except UserProfile.DoesNotExist:
            try:
                with transaction.atomic():
                    return UserProfile.objects.create(
                        id=session_user.id,
                        email=session_user.email,
                        full_name=session_user.full_name,
                    )
            except IntegrityError:
                # Concurrent insert won the race, fetch the winner
                return UserProfile.objects.get(id=session_user.id)

        changed = []
        if session_user.email and profile.email != session_user.email:
            profile.email = session_user.email
            changed.append("email")
        if session_user.full_name and profile.full_name != session_user.full_name:
            profile.full_name = session_user.full_name
            changed.append("full_name")
        if changed:
            profile.save(update_fields=[*changed, "updated_at"])
        return profile
