"""
Billing API endpoints.

``router`` serves /api/subscriptions; ``stripe_router`` serves the Stripe
hosted-page endpoints under /api/stripe.
"""

from uuid import UUID

import stripe
from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.billing.exceptions import (
    CustomerNotFoundError,
    SubscriptionAlreadyExistsError,
    SubscriptionNotFoundError,
)
from apps.billing.models import Subscription, SubscriptionPlan, UsageMetric
from apps.billing.schemas import (
    CheckoutSessionRequest,
    CreateSubscriptionRequest,
    CreateSubscriptionResponse,
    PlanResponse,
    SessionUrlResponse,
    SubscriptionResponse,
    UpdateUsageRequest,
    UsageMetricResponse,
    UsageResponse,
)
from apps.billing.services import get_subscription_service
from apps.core.auth import require_user
from apps.core.logging import get_logger
from apps.core.schemas import ErrorResponse, SuccessResponse
from apps.core.security import bearer_auth

logger = get_logger(__name__)

router = Router(tags=["subscriptions"])
stripe_router = Router(tags=["stripe"])

ALREADY_SUBSCRIBED = "Already subscribed. Use the customer portal to manage."


def _ensure_not_subscribed(request: HttpRequest) -> None:
    """Refuse while the caller's Stripe subscription can still bill, whatever its status."""
    subscription = get_subscription_service().get_subscription(require_user(request))
    if subscription is not None and subscription.has_live_remote:
        raise HttpError(400, ALREADY_SUBSCRIBED)


def _get_owned_subscription(request: HttpRequest, subscription_id: UUID) -> Subscription:
    subscription = get_subscription_service().get_subscription(require_user(request))
    if subscription is None or subscription.id != subscription_id:
        raise HttpError(404, "Subscription not found")
    return subscription


@router.get(
    "",
    response={200: SubscriptionResponse | None, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="getSubscription",
    summary="Get subscription",
)
def get_subscription(request: HttpRequest) -> Subscription | None:
    """The caller's subscription in any status, or null."""
    return get_subscription_service().get_subscription(require_user(request))


@router.post(
    "",
    response={200: CreateSubscriptionResponse, 400: ErrorResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="createSubscription",
    summary="Create subscription",
)
def create_subscription(request: HttpRequest, payload: CreateSubscriptionRequest) -> dict:
    """
    Start a subscription awaiting its first payment.

    The returned client_secret is used to confirm the payment with Stripe
    Elements; the subscription becomes active when Stripe reports it.
    """
    user = require_user(request)
    if not payload.price_id or not payload.plan_name:
        raise HttpError(400, "Price ID and plan name are required")
    _ensure_not_subscribed(request)

    service = get_subscription_service()
    try:
        customer_id = service.get_or_create_customer(user, user.email)
        subscription, client_secret = service.create_subscription(
            customer_id, payload.price_id, user, payload.plan_name
        )
    except SubscriptionAlreadyExistsError as e:
        raise HttpError(400, ALREADY_SUBSCRIBED) from e
    except stripe.StripeError:
        logger.exception("subscription_creation_failed")
        raise HttpError(500, "Failed to create subscription")

    return {
        **SubscriptionResponse.from_orm(subscription).model_dump(),
        "client_secret": client_secret,
    }


@router.delete(
    "",
    response={200: SuccessResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="cancelSubscription",
    summary="Cancel subscription",
)
def cancel_subscription(request: HttpRequest) -> SuccessResponse:
    user = require_user(request)
    service = get_subscription_service()

    subscription = service.get_subscription(user)
    if subscription is None or not subscription.stripe_subscription_id:
        raise HttpError(404, "No active subscription found")

    try:
        service.cancel_subscription(subscription.stripe_subscription_id, user)
    except SubscriptionNotFoundError as e:
        raise HttpError(404, "No active subscription found") from e
    except stripe.StripeError:
        logger.exception("subscription_cancel_failed")
        raise HttpError(500, "Failed to cancel subscription")

    return SuccessResponse()


@router.get(
    "/plans",
    response={200: list[PlanResponse]},
    auth=None,
    operation_id="listPlans",
    summary="List subscription plans",
)
def list_plans(request: HttpRequest) -> list[SubscriptionPlan]:
    """Active plans ordered by price. Public so the pricing page can use it."""
    return get_subscription_service().get_subscription_plans()


@router.get(
    "/status",
    response={200: SubscriptionResponse | None, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="getSubscriptionStatus",
    summary="Get active subscription",
)
def get_subscription_status(request: HttpRequest) -> Subscription | None:
    """The caller's subscription if it is active or trialing, else null."""
    return get_subscription_service().get_current_subscription(require_user(request))


@router.post(
    "/sync",
    response={200: SubscriptionResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="syncSubscription",
    summary="Refresh subscription from Stripe",
)
def sync_subscription(request: HttpRequest) -> Subscription:
    """
    Re-read the caller's subscription from Stripe.

    Call this after the browser confirms the first payment so access is
    granted without waiting for the webhook.
    """
    user = require_user(request)
    service = get_subscription_service()

    subscription = service.get_subscription(user)
    if subscription is None or not subscription.stripe_subscription_id:
        raise HttpError(404, "No active subscription found")

    try:
        service.sync_subscription_from_stripe(subscription)
    except stripe.StripeError:
        logger.exception("subscription_sync_failed")
        raise HttpError(500, "Failed to sync subscription")

    return service.get_subscription(user)


@router.get(
    "/{subscription_id}/usage",
    response={200: UsageResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="getSubscriptionUsage",
    summary="Get usage",
)
def get_usage(request: HttpRequest, subscription_id: UUID) -> dict:
    subscription = _get_owned_subscription(request, subscription_id)
    service = get_subscription_service()
    return {
        "subscription_id": subscription.id,
        "metrics": service.get_usage_metrics(subscription.id),
        "limits": service.get_usage_summary(subscription),
    }


@router.post(
    "/{subscription_id}/usage",
    response={
        200: UsageMetricResponse,
        400: ErrorResponse,
        401: ErrorResponse,
        404: ErrorResponse,
    },
    auth=bearer_auth,
    operation_id="updateSubscriptionUsage",
    summary="Record usage",
)
def update_usage(
    request: HttpRequest, subscription_id: UUID, payload: UpdateUsageRequest
) -> UsageMetric:
    """Add ``increment`` to the feature's running usage count."""
    subscription = _get_owned_subscription(request, subscription_id)
    if not payload.feature:
        raise HttpError(400, "Feature is required")

    try:
        return get_subscription_service().update_usage(
            subscription.id, payload.feature, payload.increment
        )
    except ValueError as e:
        raise HttpError(400, str(e)) from e


@stripe_router.post(
    "/checkout",
    response={200: SessionUrlResponse, 400: ErrorResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="createCheckoutSession",
    summary="Create Stripe Checkout session",
)
def create_checkout(request: HttpRequest, payload: CheckoutSessionRequest) -> SessionUrlResponse:
    """Returns the Stripe Checkout URL to redirect the browser to."""
    user = require_user(request)
    if not payload.price_id:
        raise HttpError(400, "Price ID is required")
    _ensure_not_subscribed(request)

    try:
        url = get_subscription_service().create_checkout_session(user, payload.price_id)
    except stripe.StripeError:
        logger.exception("checkout_session_creation_failed")
        raise HttpError(500, "Failed to create checkout session")

    return SessionUrlResponse(url=url)


@stripe_router.post(
    "/create-portal-session",
    response={200: SessionUrlResponse, 400: ErrorResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="createPortalSession",
    summary="Create Stripe Customer Portal session",
)
def create_portal(request: HttpRequest) -> SessionUrlResponse:
    user = require_user(request)

    try:
        url = get_subscription_service().create_portal_session(user)
    except CustomerNotFoundError as e:
        raise HttpError(400, "No billing account set up") from e
    except stripe.StripeError:
        logger.exception("portal_session_creation_failed")
        raise HttpError(500, "Failed to create portal session")

    return SessionUrlResponse(url=url)
