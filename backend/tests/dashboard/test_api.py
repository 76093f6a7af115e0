"""
Tests for the dashboard summary.
"""

from decimal import Decimal

import pytest
from django.test import Client

from apps.billing.models import Subscription
from apps.dashboard.api import dashboard_summary
from apps.invoices.models import Invoice
from apps.quotes.models import Quote
from tests.accounts.factories import UserProfileFactory
from tests.billing.factories import SubscriptionFactory
from tests.clients.factories import ClientFactory
from tests.conftest import make_request_with_auth
from tests.invoices.factories import InvoiceFactory
from tests.quotes.factories import QuoteFactory


@pytest.mark.django_db
class TestDashboardSummary:
    def test_totals_by_status(self, api_client: Client, auth_headers) -> None:
        user = UserProfileFactory.create()
        InvoiceFactory.create(user=user, total_amount=Decimal("100.00"))
        InvoiceFactory.create(user=user, total_amount=Decimal("250.50"))
        InvoiceFactory.create(user=user, status=Invoice.Status.PAID, total_amount=Decimal("75.00"))
        InvoiceFactory.create(total_amount=Decimal("9999.00"))
        QuoteFactory.create(user=user, status=Quote.Status.SENT)
        QuoteFactory.create(user=user, status=Quote.Status.ACCEPTED)
        ClientFactory.create(user=user)

        response = api_client.get("/api/dashboard/summary", **auth_headers(user))

        assert response.status_code == 200
        body = response.json()
        assert body["outstanding"] == {"count": 2, "total_amount": 350.5}
        assert body["paid"] == {"count": 1, "total_amount": 75}
        assert body["overdue"] == {"count": 0, "total_amount": 0}
        assert body["open_quotes"] == 1
        assert body["clients"] == 1
        assert body["subscription_status"] is None
        assert body["plan_name"] is None

    def test_includes_subscription_state(self, api_client: Client, auth_headers) -> None:
        subscription = SubscriptionFactory.create(
            status=Subscription.Status.PAST_DUE, plan_name="professional"
        )

        response = api_client.get("/api/dashboard/summary", **auth_headers(subscription.user))

        body = response.json()
        assert body["subscription_status"] == "past_due"
        assert body["plan_name"] == "professional"


@pytest.mark.django_db
class TestDashboardEndpoint:
    def test_called_directly_with_auth_context(self, request_factory) -> None:
        user = UserProfileFactory.create()
        InvoiceFactory.create(user=user, status=Invoice.Status.OVERDUE, total_amount=Decimal("40"))
        request = make_request_with_auth(request_factory.get("/api/dashboard/summary"), user)

        result = dashboard_summary(request)

        assert result["overdue"] == {"count": 1, "total_amount": Decimal("40.00")}
        assert result["open_quotes"] == 0
