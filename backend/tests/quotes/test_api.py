"""
Tests for the quotes API, the public share link and quote conversion.
"""

import uuid
from datetime import date
from decimal import Decimal

import pytest
from django.test import Client

from apps.billing.models import UsageMetric
from apps.invoices.models import Invoice
from apps.quotes.models import Quote
from tests.accounts.factories import UserProfileFactory
from tests.billing.factories import (
    SubscriptionFactory,
    SubscriptionPlanFactory,
    UsageMetricFactory,
)
from tests.clients.factories import ClientFactory
from tests.quotes.factories import QuoteFactory, QuoteItemFactory


def _create_quote(api_client: Client, headers: dict, **payload):
    return api_client.post(
        "/api/quotes",
        data={"client_name": "Dana Whitfield", **payload},
        content_type="application/json",
        **headers,
    )


@pytest.mark.django_db
class TestQuotesCrud:
    def test_create_quote(self, api_client: Client, auth_headers) -> None:
        user = UserProfileFactory.create()

        response = api_client.post(
            "/api/quotes",
            data={
                "client_name": "Dana Whitfield",
                "project_name": "Deck rebuild",
                "valid_until": "2026-12-31",
                "items": [{"description": "Cedar boards", "quantity": 40, "unit_price": "8.75"}],
            },
            content_type="application/json",
            **auth_headers(user),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["quote_number"] == "Q-0001"
        assert body["status"] == "draft"
        assert body["total_amount"] == 350
        assert body["converted_invoice_id"] is None

    def test_list_returns_only_callers_quotes(self, api_client: Client, auth_headers) -> None:
        user = UserProfileFactory.create()
        mine = QuoteFactory.create(user=user)
        QuoteFactory.create()

        response = api_client.get("/api/quotes", **auth_headers(user))

        assert [q["id"] for q in response.json()] == [str(mine.id)]

    def test_update_status(self, api_client: Client, auth_headers) -> None:
        user = UserProfileFactory.create()
        quote = QuoteFactory.create(user=user)

        response = api_client.patch(
            f"/api/quotes/{quote.id}",
            data={"status": "sent"},
            content_type="application/json",
            **auth_headers(user),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "sent"

    def test_other_users_quote_is_404(self, api_client: Client, auth_headers) -> None:
        user = UserProfileFactory.create()
        other = QuoteFactory.create()

        response = api_client.delete(f"/api/quotes/{other.id}", **auth_headers(user))

        assert response.status_code == 404
        assert response.json() == {"error": "Quote not found"}
        assert Quote.objects.filter(id=other.id).exists()

    def test_number_after_delete_is_not_reused(self, api_client: Client, auth_headers) -> None:
        headers = auth_headers(UserProfileFactory.create())
        created = [_create_quote(api_client, headers).json() for _ in range(3)]

        api_client.delete(f"/api/quotes/{created[0]['id']}", **headers)
        response = _create_quote(api_client, headers)

        assert response.status_code == 201
        assert response.json()["quote_number"] == "Q-0004"

    def test_duplicate_quote_number_is_400(self, api_client: Client, auth_headers) -> None:
        user = UserProfileFactory.create()
        QuoteFactory.create(user=user, quote_number="EST-7")

        response = _create_quote(api_client, auth_headers(user), quote_number="EST-7")

        assert response.status_code == 400
        assert response.json() == {"error": "Quote number already in use"}

    def test_patch_null_clears_valid_until(self, api_client: Client, auth_headers) -> None:
        user = UserProfileFactory.create()
        quote = QuoteFactory.create(user=user, valid_until=date(2026, 12, 31))

        response = api_client.patch(
            f"/api/quotes/{quote.id}",
            data={"valid_until": None},
            content_type="application/json",
            **auth_headers(user),
        )

        assert response.status_code == 200
        assert response.json()["valid_until"] is None
        quote.refresh_from_db()
        assert quote.valid_until is None


@pytest.mark.django_db
class TestConvertQuote:
    def _quote(self, user, **kwargs) -> Quote:
        quote = QuoteFactory.create(
            user=user,
            client=ClientFactory.create(user=user),
            client_name="Dana Whitfield",
            client_email="dana@example.com",
            tax_rate=Decimal("10"),
            notes="Includes haul-away",
            **kwargs,
        )
        QuoteItemFactory.create(quote=quote, description="Cabinet install", position=0)
        QuoteItemFactory.create(
            quote=quote, description="Hardware", quantity=Decimal("10"), unit_price=Decimal("4"), position=1
        )
        return quote

    def test_convert_creates_invoice_and_accepts_quote(self, api_client: Client, auth_headers) -> None:
        user = UserProfileFactory.create()
        quote = self._quote(user, status=Quote.Status.SENT)

        response = api_client.post(f"/api/quotes/{quote.id}/convert", **auth_headers(user))

        assert response.status_code == 201
        body = response.json()
        assert body["customer_name"] == "Dana Whitfield"
        assert body["customer_email"] == "dana@example.com"
        assert body["client_id"] == str(quote.client_id)
        assert body["notes"] == "Includes haul-away"
        assert [i["description"] for i in body["items"]] == ["Cabinet install", "Hardware"]
        assert body["subtotal"] == 340
        assert body["total_amount"] == 374
        assert body["status"] == "outstanding"

        quote.refresh_from_db()
        assert quote.status == Quote.Status.ACCEPTED
        assert str(quote.converted_invoice_id) == body["id"]

    def test_second_conversion_is_400(self, api_client: Client, auth_headers) -> None:
        user = UserProfileFactory.create()
        quote = self._quote(user)
        headers = auth_headers(user)

        api_client.post(f"/api/quotes/{quote.id}/convert", **headers)
        response = api_client.post(f"/api/quotes/{quote.id}/convert", **headers)

        assert response.status_code == 400
        assert response.json() == {"error": "Quote has already been converted"}
        assert Invoice.objects.filter(user=user).count() == 1

    def test_convert_counts_invoice_usage(
        self, api_client: Client, auth_headers, use_subscription_service
    ) -> None:
        SubscriptionPlanFactory.create()
        subscription = SubscriptionFactory.create()
        quote = self._quote(subscription.user)

        api_client.post(f"/api/quotes/{quote.id}/convert", **auth_headers(subscription.user))

        metric = UsageMetric.objects.get(subscription=subscription, feature="invoices")
        assert metric.usage_count == 1

    def test_convert_respects_plan_limit(
        self, api_client: Client, auth_headers, use_subscription_service
    ) -> None:
        SubscriptionPlanFactory.create()
        subscription = SubscriptionFactory.create()
        UsageMetricFactory.create(subscription=subscription, feature="invoices", usage_count=25)
        quote = self._quote(subscription.user)

        response = api_client.post(
            f"/api/quotes/{quote.id}/convert", **auth_headers(subscription.user)
        )

        assert response.status_code == 403
        quote.refresh_from_db()
        assert not quote.is_converted

    def test_other_users_quote_is_404(self, api_client: Client, auth_headers) -> None:
        user = UserProfileFactory.create()
        other = self._quote(UserProfileFactory.create())

        response = api_client.post(f"/api/quotes/{other.id}/convert", **auth_headers(user))

        assert response.status_code == 404


@pytest.mark.django_db
class TestPublicQuote:
    def test_sent_quote_becomes_viewed(self, api_client: Client) -> None:
        quote = QuoteFactory.create(status=Quote.Status.SENT)
        QuoteItemFactory.create(quote=quote)

        response = api_client.get(f"/api/public/quotes/{quote.public_token}")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "viewed"
        assert len(body["items"]) == 1
        assert "user_id" not in body
        assert "public_token" not in body
        quote.refresh_from_db()
        assert quote.status == Quote.Status.VIEWED

    @pytest.mark.parametrize("status", [Quote.Status.DRAFT, Quote.Status.ACCEPTED])
    def test_other_statuses_are_unchanged(self, api_client: Client, status: str) -> None:
        quote = QuoteFactory.create(status=status)

        response = api_client.get(f"/api/public/quotes/{quote.public_token}")

        assert response.status_code == 200
        quote.refresh_from_db()
        assert quote.status == status

    def test_unknown_token_is_404(self, api_client: Client) -> None:
        response = api_client.get(f"/api/public/quotes/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json() == {"error": "Quote not found"}
