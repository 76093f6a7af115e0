"""
Authentication context for request lifecycle.

Provides a typed container for authentication state that BearerAuth
populates and endpoints consume.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.http import HttpRequest
from ninja.errors import HttpError

if TYPE_CHECKING:
    from apps.accounts.models import UserProfile


@dataclass
class AuthContext:
    """
    Authentication context attached to requests as ``request.auth``.

    Attributes:
        user: The authenticated UserProfile, or None if not authenticated
    """

    user: "UserProfile | None" = None

    def require_auth(self) -> "UserProfile":
        """
        Get the authenticated user or raise 401.

        Raises:
            HttpError 401: If not authenticated
        """
        if self.user is None:
            raise HttpError(401, "Unauthorized")
        return self.user


def require_user(request: HttpRequest) -> "UserProfile":
    """
    Return the authenticated user for a request or raise 401.

    Works whether or not the request went through BearerAuth, so endpoint
    functions stay safe when called directly.
    """
    auth = getattr(request, "auth", None)
    if not isinstance(auth, AuthContext):
        raise HttpError(401, "Unauthorized")
    return auth.require_auth()
