"""
Core security - authentication classes for API.
"""

from django.http import HttpRequest
from ninja.security import HttpBearer

from apps.accounts.services import get_or_create_profile
from apps.accounts.supabase_client import get_session_user
from apps.core.auth import AuthContext
from apps.core.logging import bind_contextvars


class BearerAuth(HttpBearer):
    """
    Bearer session authentication for API endpoints.

    Resolves the Supabase session token to a user and attaches an
    AuthContext as ``request.auth``. Returning None makes Django Ninja
    answer 401.
    """

    def authenticate(self, request: HttpRequest, token: str) -> AuthContext | None:
        if not token:
            return None

        session_user = get_session_user(token)
        if session_user is None:
            return None

        profile = get_or_create_profile(session_user)
        bind_contextvars(**{"usr.id": str(profile.id)})
        return AuthContext(user=profile)


bearer_auth = BearerAuth()
