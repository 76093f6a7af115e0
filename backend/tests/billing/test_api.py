"""
Tests for the subscription and Stripe session endpoints.
"""

from unittest.mock import MagicMock

import pytest
import stripe
from django.test import Client

from apps.billing.models import Subscription, UsageMetric
from tests.accounts.factories import UserProfileFactory
from tests.billing.factories import (
    SubscriptionFactory,
    SubscriptionPlanFactory,
    UsageMetricFactory,
)


def _post(api_client: Client, url: str, headers: dict, data: dict | None = None):
    return api_client.post(url, data=data or {}, content_type="application/json", **headers)


@pytest.mark.django_db
class TestPlans:
    def test_plans_are_public_and_ordered_by_price(self, api_client: Client) -> None:
        SubscriptionPlanFactory.create(name="professional", display_name="Professional", price=79)
        SubscriptionPlanFactory.create(name="starter", price=29)
        SubscriptionPlanFactory.create(name="retired", price=5, is_active=False)

        response = api_client.get("/api/subscriptions/plans")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["starter", "professional"]
        assert response.json()[0]["usage_limits"]["invoices_limit"] == 25


@pytest.mark.django_db
@pytest.mark.usefixtures("use_subscription_service")
class TestSubscriptionEndpoints:
    def test_get_without_subscription_is_null(self, api_client: Client, auth_headers) -> None:
        response = api_client.get("/api/subscriptions", **auth_headers(UserProfileFactory.create()))

        assert response.status_code == 200
        assert response.json() is None

    def test_get_returns_any_status(self, api_client: Client, auth_headers) -> None:
        subscription = SubscriptionFactory.create(status=Subscription.Status.PAST_DUE)

        response = api_client.get("/api/subscriptions", **auth_headers(subscription.user))

        body = response.json()
        assert body["id"] == str(subscription.id)
        assert body["status"] == "past_due"
        assert body["is_active"] is False

    def test_status_only_reports_active(self, api_client: Client, auth_headers) -> None:
        subscription = SubscriptionFactory.create(status=Subscription.Status.CANCELED)

        response = api_client.get("/api/subscriptions/status", **auth_headers(subscription.user))

        assert response.status_code == 200
        assert response.json() is None

    @pytest.mark.parametrize(
        "payload", [{}, {"price_id": "price_starter"}, {"plan_name": "starter"}]
    )
    def test_create_requires_price_and_plan(
        self, api_client: Client, auth_headers, payload: dict
    ) -> None:
        response = _post(
            api_client, "/api/subscriptions", auth_headers(UserProfileFactory.create()), payload
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Price ID and plan name are required"}

    def test_create_subscription(
        self, api_client: Client, auth_headers, stripe_client: MagicMock
    ) -> None:
        user = UserProfileFactory.create()
        stripe_client.Customer.create.return_value = {"id": "cus_new"}
        stripe_client.Subscription.create.return_value = {
            "id": "sub_new",
            "customer": "cus_new",
            "status": "incomplete",
            "items": {"data": [{"price": {"id": "price_starter"}}]},
            "latest_invoice": {"confirmation_secret": {"client_secret": "secret_abc"}},
        }

        response = _post(
            api_client,
            "/api/subscriptions",
            auth_headers(user),
            {"price_id": "price_starter", "plan_name": "starter"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "incomplete"
        assert body["client_secret"] == "secret_abc"
        assert body["stripe_customer_id"] == "cus_new"
        assert body["stripe_subscription_id"] == "sub_new"

    def test_create_when_already_active_is_400(
        self, api_client: Client, auth_headers, stripe_client: MagicMock
    ) -> None:
        subscription = SubscriptionFactory.create()

        response = _post(
            api_client,
            "/api/subscriptions",
            auth_headers(subscription.user),
            {"price_id": "price_starter", "plan_name": "starter"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Already subscribed. Use the customer portal to manage."}
        stripe_client.Subscription.create.assert_not_called()

    @pytest.mark.parametrize(
        "status",
        [
            Subscription.Status.PAST_DUE,
            Subscription.Status.PAYMENT_FAILED,
            Subscription.Status.INCOMPLETE,
            Subscription.Status.UNPAID,
        ],
    )
    def test_create_while_unpaid_subscription_can_still_bill_is_400(
        self, api_client: Client, auth_headers, stripe_client: MagicMock, status: str
    ) -> None:
        subscription = SubscriptionFactory.create(status=status, stripe_subscription_id="sub_old")

        response = _post(
            api_client,
            "/api/subscriptions",
            auth_headers(subscription.user),
            {"price_id": "price_starter", "plan_name": "starter"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Already subscribed. Use the customer portal to manage."}
        stripe_client.Subscription.create.assert_not_called()
        subscription.refresh_from_db()
        assert subscription.stripe_subscription_id == "sub_old"

    def test_create_after_cancellation_reuses_row(
        self, api_client: Client, auth_headers, stripe_client: MagicMock
    ) -> None:
        subscription = SubscriptionFactory.create(
            status=Subscription.Status.CANCELED,
            stripe_subscription_id="sub_old",
            stripe_customer_id="cus_old",
        )
        stripe_client.Subscription.create.return_value = {
            "id": "sub_new",
            "customer": "cus_old",
            "status": "incomplete",
            "items": {"data": [{"price": {"id": "price_starter"}}]},
            "latest_invoice": {"confirmation_secret": {"client_secret": "secret_abc"}},
        }

        response = _post(
            api_client,
            "/api/subscriptions",
            auth_headers(subscription.user),
            {"price_id": "price_starter", "plan_name": "starter"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == str(subscription.id)
        assert body["stripe_subscription_id"] == "sub_new"
        stripe_client.Customer.create.assert_not_called()
        assert stripe_client.Subscription.create.call_args.kwargs["customer"] == "cus_old"

    def test_stripe_failure_is_500(
        self, api_client: Client, auth_headers, stripe_client: MagicMock
    ) -> None:
        stripe_client.Customer.create.side_effect = stripe.APIConnectionError("network down")

        response = _post(
            api_client,
            "/api/subscriptions",
            auth_headers(UserProfileFactory.create()),
            {"price_id": "price_starter", "plan_name": "starter"},
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to create subscription"}

    def test_cancel(self, api_client: Client, auth_headers, stripe_client: MagicMock) -> None:
        subscription = SubscriptionFactory.create(stripe_subscription_id="sub_123")
        stripe_client.Subscription.cancel.return_value = {"id": "sub_123", "status": "canceled"}

        response = api_client.delete("/api/subscriptions", **auth_headers(subscription.user))

        assert response.status_code == 200
        assert response.json() == {"success": True}
        subscription.refresh_from_db()
        assert subscription.status == Subscription.Status.CANCELED

    def test_cancel_without_subscription_is_404(self, api_client: Client, auth_headers) -> None:
        response = api_client.delete(
            "/api/subscriptions", **auth_headers(UserProfileFactory.create())
        )

        assert response.status_code == 404
        assert response.json() == {"error": "No active subscription found"}

    def test_sync(self, api_client: Client, auth_headers, stripe_client: MagicMock) -> None:
        subscription = SubscriptionFactory.create(
            stripe_subscription_id="sub_123", status=Subscription.Status.INCOMPLETE
        )
        stripe_client.Subscription.retrieve.return_value = {"id": "sub_123", "status": "active"}

        response = _post(api_client, "/api/subscriptions/sync", auth_headers(subscription.user))

        assert response.status_code == 200
        assert response.json()["status"] == "active"


@pytest.mark.django_db
@pytest.mark.usefixtures("use_subscription_service")
class TestUsageEndpoints:
    def test_get_usage(self, api_client: Client, auth_headers) -> None:
        SubscriptionPlanFactory.create()
        subscription = SubscriptionFactory.create()
        UsageMetricFactory.create(subscription=subscription, feature="invoices", usage_count=3)

        response = api_client.get(
            f"/api/subscriptions/{subscription.id}/usage", **auth_headers(subscription.user)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["subscription_id"] == str(subscription.id)
        assert body["metrics"][0]["usage_count"] == 3
        invoices = next(row for row in body["limits"] if row["feature"] == "invoices")
        assert invoices["remaining"] == 22

    def test_post_usage_is_additive(self, api_client: Client, auth_headers) -> None:
        subscription = SubscriptionFactory.create()
        headers = auth_headers(subscription.user)
        url = f"/api/subscriptions/{subscription.id}/usage"

        _post(api_client, url, headers, {"feature": "api_calls", "increment": 5})
        response = _post(api_client, url, headers, {"feature": "api_calls", "increment": 2})

        assert response.status_code == 200
        assert response.json()["usage_count"] == 7
        assert UsageMetric.objects.get(subscription=subscription).usage_count == 7

    def test_post_usage_requires_feature(self, api_client: Client, auth_headers) -> None:
        subscription = SubscriptionFactory.create()

        response = _post(
            api_client,
            f"/api/subscriptions/{subscription.id}/usage",
            auth_headers(subscription.user),
            {"increment": 1},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Feature is required"}

    def test_post_usage_below_zero_is_400(self, api_client: Client, auth_headers) -> None:
        subscription = SubscriptionFactory.create()

        response = _post(
            api_client,
            f"/api/subscriptions/{subscription.id}/usage",
            auth_headers(subscription.user),
            {"feature": "storage_mb", "increment": -1},
        )

        assert response.status_code == 400

    def test_other_users_subscription_is_404(self, api_client: Client, auth_headers) -> None:
        subscription = SubscriptionFactory.create()

        response = api_client.get(
            f"/api/subscriptions/{subscription.id}/usage",
            **auth_headers(UserProfileFactory.create()),
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Subscription not found"}


@pytest.mark.django_db
@pytest.mark.usefixtures("use_subscription_service")
class TestStripeSessions:
    def test_checkout_returns_url(
        self, api_client: Client, auth_headers, stripe_client: MagicMock
    ) -> None:
        stripe_client.Customer.create.return_value = {"id": "cus_new"}
        stripe_client.checkout.Session.create.return_value = {
            "id": "cs_1",
            "url": "https://checkout.stripe.com/c/cs_1",
        }

        response = _post(
            api_client,
            "/api/stripe/checkout",
            auth_headers(UserProfileFactory.create()),
            {"price_id": "price_pro"},
        )

        assert response.status_code == 200
        assert response.json() == {"url": "https://checkout.stripe.com/c/cs_1"}

    def test_checkout_requires_price(self, api_client: Client, auth_headers) -> None:
        response = _post(
            api_client, "/api/stripe/checkout", auth_headers(UserProfileFactory.create())
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Price ID is required"}

    def test_checkout_while_past_due_is_400(
        self, api_client: Client, auth_headers, stripe_client: MagicMock
    ) -> None:
        subscription = SubscriptionFactory.create(status=Subscription.Status.PAST_DUE)

        response = _post(
            api_client,
            "/api/stripe/checkout",
            auth_headers(subscription.user),
            {"price_id": "price_pro"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Already subscribed. Use the customer portal to manage."}
        stripe_client.checkout.Session.create.assert_not_called()

    def test_portal_without_customer_is_400(self, api_client: Client, auth_headers) -> None:
        response = _post(
            api_client,
            "/api/stripe/create-portal-session",
            auth_headers(UserProfileFactory.create()),
        )

        assert response.status_code == 400
        assert response.json() == {"error": "No billing account set up"}

    def test_portal_returns_url(
        self, api_client: Client, auth_headers, stripe_client: MagicMock
    ) -> None:
        subscription = SubscriptionFactory.create(stripe_customer_id="cus_123")
        stripe_client.billing_portal.Session.create.return_value = {
            "url": "https://billing.stripe.com/p/session_1"
        }

        response = _post(
            api_client, "/api/stripe/create-portal-session", auth_headers(subscription.user)
        )

        assert response.status_code == 200
        assert response.json() == {"url": "https://billing.stripe.com/p/session_1"}
