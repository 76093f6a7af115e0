"""
Shared pytest fixtures for all tests.

This module provides common fixtures used across multiple test modules.
Individual test modules can override these fixtures if needed.

Factories
---------
Import factories directly from their modules:

    from tests.accounts.factories import UserProfileFactory
    from tests.billing.factories import SubscriptionFactory, SubscriptionPlanFactory
    from tests.invoices.factories import InvoiceFactory, InvoiceItemFactory

Example usage:

    @pytest.mark.django_db
    def test_something(api_client, auth_headers):
        user = UserProfileFactory.create()
        response = api_client.get("/api/invoices", **auth_headers(user))
"""

from collections.abc import Callable, Iterator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from django.http import HttpRequest
from django.test import Client, RequestFactory
from django.test.client import WSGIRequest  # type: ignore[attr-defined]

from apps.accounts.models import UserProfile
from apps.accounts.supabase_client import SessionUser
from apps.billing.services import SubscriptionService
from apps.core.auth import AuthContext


class MockRequest(HttpRequest):
    """
    HttpRequest subclass for tests that allows setting auth attribute.

    Example:
        request = MockRequest()
        request.auth = AuthContext(user=user)
    """

    auth: AuthContext


def make_request_with_auth(request: "WSGIRequest", user: UserProfile) -> "WSGIRequest":
    """
    Attach an AuthContext for ``user`` to a RequestFactory request.

    Lets endpoint functions be called directly, bypassing BearerAuth.
    """
    request.auth = AuthContext(user=user)  # type: ignore[attr-defined]
    return request


@pytest.fixture
def request_factory() -> RequestFactory:
    """
    Django request factory for unit testing views.

    Example:
        def test_endpoint(request_factory):
            request = make_request_with_auth(request_factory.get("/api/clients"), user)
            result = list_clients_endpoint(request)
    """
    return RequestFactory()


@pytest.fixture
def api_client() -> Client:
    """
    Django test client for full HTTP request/response cycle tests.

    Example:
        def test_api_returns_200(api_client):
            response = api_client.get("/api/health")
            assert response.status_code == 200
    """
    return Client()


@pytest.fixture
def auth_headers() -> Iterator[Callable[[UserProfile], dict[str, str]]]:
    """
    Factory fixture that signs a user in for test-client requests.

    Supabase is replaced with an in-memory token table; the returned
    function registers a token for a profile and gives back the
    Authorization header kwargs for Client methods.

    Example:
        response = api_client.get("/api/invoices", **auth_headers(user))
    """
    sessions: dict[str, SessionUser] = {}

    def _lookup(token: str) -> SessionUser | None:
        return sessions.get(token)

    def _headers(user: UserProfile) -> dict[str, str]:
        token = f"session-{user.id}"
        sessions[token] = SessionUser(id=str(user.id), email=user.email, full_name=user.full_name)
        return {"HTTP_AUTHORIZATION": f"Bearer {token}"}

    with patch("apps.core.security.get_session_user", side_effect=_lookup):
        yield _headers


@pytest.fixture
def stripe_client() -> MagicMock:
    """Stand-in for the configured stripe module."""
    return MagicMock()


@pytest.fixture
def subscription_service(stripe_client: MagicMock) -> SubscriptionService:
    """SubscriptionService wired to the mock Stripe client."""
    return SubscriptionService(stripe=stripe_client)


@pytest.fixture
def use_subscription_service(subscription_service: SubscriptionService) -> Iterator[Any]:
    """
    Make every API module use the mock-backed SubscriptionService.

    Example:
        def test_checkout(api_client, auth_headers, use_subscription_service, stripe_client):
            stripe_client.checkout.Session.create.return_value = {"id": "cs_1", "url": "..."}
    """
    with (
        patch("apps.billing.api.get_subscription_service", return_value=subscription_service),
        patch("apps.billing.webhooks.get_subscription_service", return_value=subscription_service),
        patch("apps.invoices.api.get_subscription_service", return_value=subscription_service),
    ):
        yield subscription_service
