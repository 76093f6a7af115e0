"""
Billing API schemas - request/response types for billing endpoints.
"""

from datetime import datetime
from uuid import UUID

from ninja import Schema


class SubscriptionResponse(Schema):
    """A user's subscription as stored locally."""

    id: UUID
    user_id: UUID
    stripe_customer_id: str
    stripe_subscription_id: str | None
    stripe_price_id: str
    status: str
    plan_name: str
    current_period_start: datetime | None
    current_period_end: datetime | None
    cancel_at_period_end: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CreateSubscriptionRequest(Schema):
    price_id: str = ""
    plan_name: str = ""


class CreateSubscriptionResponse(SubscriptionResponse):
    """Subscription plus the secret the browser needs to confirm the first payment."""

    client_secret: str | None = None


class PlanResponse(Schema):
    id: int
    name: str
    display_name: str
    price: float
    billing_cycle: str
    stripe_price_id: str
    features: list[str]
    usage_limits: dict[str, int]


class UsageMetricResponse(Schema):
    feature: str
    usage_count: int
    last_updated: datetime


class UsageLimitResponse(Schema):
    """Usage for one limited feature; -1 means unlimited, None means no known plan."""

    feature: str
    usage: int
    limit: int | None
    remaining: int | None


class UsageResponse(Schema):
    subscription_id: UUID
    metrics: list[UsageMetricResponse]
    limits: list[UsageLimitResponse]


class UpdateUsageRequest(Schema):
    feature: str = ""
    increment: int = 1


class CheckoutSessionRequest(Schema):
    """Request to create a Stripe Checkout session."""

    price_id: str = ""


class SessionUrlResponse(Schema):
    """Hosted Stripe page to redirect the browser to."""

    url: str
