"""
Accounts models - local profile for users authenticated by Supabase.
"""

import uuid

from django.db import models


class UserProfile(models.Model):
    """
    Local replica of a Supabase Auth user.

    Supabase is the source of truth for identity; the primary key is the
    Supabase user id so every owned row stores it as user_id.
    Created on the first authenticated request.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(db_index=True)
    full_name = models.CharField(max_length=255, blank=True)
    company_name = models.CharField(max_length=255, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "user_profiles"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.email
