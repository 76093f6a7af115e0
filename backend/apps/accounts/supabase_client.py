"""
Supabase Auth client.

Resolves a bearer session token to the user it belongs to by asking the
Supabase Auth server, the same check supabase-js performs with getUser().
"""

from dataclasses import dataclass
from uuid import UUID

import httpx

from apps.core.logging import get_logger
from config.settings.base import settings

logger = get_logger(__name__)


@dataclass
class SessionUser:
    """The user behind a valid Supabase session."""

    id: str
    email: str
    full_name: str = ""


def get_session_user(token: str) -> SessionUser | None:
    """
    Look up the user for a Supabase access token.

    Returns None when the token is rejected or the auth server cannot be
    reached; callers treat both as unauthenticated.
    """
    url = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/user"
    try:
        response = httpx.get(
            url,
            headers={
                "apikey": settings.SUPABASE_ANON_KEY,
                "Authorization": f"Bearer {token}",
            },
            timeout=settings.SUPABASE_AUTH_TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as e:
        logger.warning("supabase_auth_unreachable", error=str(e))
        return None

    if response.status_code != 200:
        logger.info("supabase_auth_rejected", status_code=response.status_code)
        return None

    try:
        data = response.json()
    except ValueError:
        logger.warning("supabase_auth_invalid_body")
        return None
    if not isinstance(data, dict):
        logger.warning("supabase_auth_invalid_body")
        return None

    user_id = data.get("id")
    try:
        user_id = str(UUID(str(user_id)))
    except ValueError:
        logger.warning("supabase_auth_invalid_user_id")
        return None

    metadata = data.get("user_metadata") or {}
    return SessionUser(
        id=user_id,
        email=data.get("email") or "",
        full_name=metadata.get("full_name") or metadata.get("name") or "",
    )
