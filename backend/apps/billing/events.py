"""
Stripe webhook event dispatch table.

Each handler is a pure function from the event's data object to a
SubscriptionEffect: which local subscription row to touch and which fields
to set on it. Nothing here reads or writes the database;
SubscriptionService.apply_effect does that.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from apps.billing.models import Subscription
from apps.invoices.models import Invoice

StripeObject = Mapping[str, Any]


@dataclass(frozen=True)
class SubscriptionEffect:
    """
    A change to apply to one local subscription row.

    The row is located by ``stripe_subscription_id``, then by
    ``stripe_customer_id``, then by ``user_id``. ``invoice_id`` and
    ``invoice_status`` optionally update a BuildLedger invoice as well.
    """

    stripe_subscription_id: str | None = None
    stripe_customer_id: str | None = None
    user_id: str | None = None
    changes: dict[str, Any] = field(default_factory=dict)
    invoice_id: str | None = None
    invoice_status: str | None = None


def _metadata(obj: StripeObject) -> Mapping[str, Any]:
    return obj.get("metadata") or {}


def _user_id(obj: StripeObject) -> str | None:
    metadata = _metadata(obj)
    return metadata.get("user_id") or metadata.get("userId") or obj.get("client_reference_id")


def _id(value: Any) -> str | None:
    """Stripe sends either an id string or an expanded object."""
    if value is None or isinstance(value, str):
        return value
    return value.get("id")


def _timestamp(value: int | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(value, tz=UTC)


def _first_item(subscription: StripeObject) -> Mapping[str, Any]:
    items = (subscription.get("items") or {}).get("data") or []
    return items[0] if items else {}


def subscription_fields(subscription: StripeObject) -> dict[str, Any]:
    """
    Local column values for a Stripe subscription object.

    Period bounds moved from the subscription onto its items in newer API
    versions; both locations are read.
    """
    item = _first_item(subscription)
    price = item.get("price") or {}

    period_start = subscription.get("current_period_start") or item.get("current_period_start")
    period_end = subscription.get("current_period_end") or item.get("current_period_end")

    changes: dict[str, Any] = {
        "status": subscription["status"],
        "cancel_at_period_end": bool(subscription.get("cancel_at_period_end", False)),
    }
    if price.get("id"):
        changes["stripe_price_id"] = price["id"]
    plan_name = _metadata(subscription).get("plan_name")
    if plan_name:
        changes["plan_name"] = plan_name
    if period_start:
        changes["current_period_start"] = _timestamp(period_start)
    if period_end:
        changes["current_period_end"] = _timestamp(period_end)
    return changes


def checkout_session_completed(session: StripeObject) -> SubscriptionEffect | None:
    subscription_id = _id(session.get("subscription"))
    customer_id = _id(session.get("customer"))
    if not subscription_id and not customer_id:
        return None

    changes: dict[str, Any] = {"status": Subscription.Status.ACTIVE}
    if customer_id:
        changes["stripe_customer_id"] = customer_id
    if subscription_id:
        changes["stripe_subscription_id"] = subscription_id
    plan_name = _metadata(session).get("plan_name")
    if plan_name:
        changes["plan_name"] = plan_name

    return SubscriptionEffect(
        stripe_subscription_id=subscription_id,
        stripe_customer_id=customer_id,
        user_id=_user_id(session),
        changes=changes,
    )


def subscription_changed(subscription: StripeObject) -> SubscriptionEffect:
    customer_id = _id(subscription.get("customer"))
    changes = subscription_fields(subscription)
    changes["stripe_subscription_id"] = subscription["id"]
    if customer_id:
        changes["stripe_customer_id"] = customer_id

    return SubscriptionEffect(
        stripe_subscription_id=subscription["id"],
        stripe_customer_id=customer_id,
        user_id=_user_id(subscription),
        changes=changes,
    )


def subscription_deleted(subscription: StripeObject) -> SubscriptionEffect:
    return SubscriptionEffect(
        stripe_subscription_id=subscription["id"],
        stripe_customer_id=_id(subscription.get("customer")),
        user_id=_user_id(subscription),
        changes={
            "status": Subscription.Status.CANCELED,
            "cancel_at_period_end": False,
        },
    )


def _invoice_subscription_id(invoice: StripeObject) -> str | None:
    # Newer API versions nest the subscription under parent.subscription_details.
    parent = invoice.get("parent") or {}
    details = parent.get("subscription_details") or {}
    return _id(details.get("subscription")) or _id(invoice.get("subscription"))


def _invoice_effect(
    invoice: StripeObject, subscription_status: str, invoice_status: str
) -> SubscriptionEffect:
    subscription_id = _invoice_subscription_id(invoice)
    invoice_id = _metadata(invoice).get("invoice_id") or _metadata(invoice).get("invoiceId")

    changes: dict[str, Any] = {}
    # A one-off payment for a BuildLedger invoice says nothing about the plan.
    if subscription_id or not invoice_id:
        changes["status"] = subscription_status

    return SubscriptionEffect(
        stripe_subscription_id=subscription_id,
        stripe_customer_id=_id(invoice.get("customer")),
        changes=changes,
        invoice_id=invoice_id,
        invoice_status=invoice_status if invoice_id else None,
    )


def invoice_payment_failed(invoice: StripeObject) -> SubscriptionEffect:
    return _invoice_effect(invoice, Subscription.Status.PAYMENT_FAILED, Invoice.Status.OVERDUE)


def invoice_payment_succeeded(invoice: StripeObject) -> SubscriptionEffect:
    return _invoice_effect(invoice, Subscription.Status.ACTIVE, Invoice.Status.PAID)


EVENT_HANDLERS: dict[str, Callable[[StripeObject], SubscriptionEffect | None]] = {
    "checkout.session.completed": checkout_session_completed,
    "customer.subscription.created": subscription_changed,
    "customer.subscription.updated": subscription_changed,
    "customer.subscription.deleted": subscription_deleted,
    "invoice.payment_failed": invoice_payment_failed,
    "invoice.payment_succeeded": invoice_payment_succeeded,
    "invoice.paid": invoice_payment_succeeded,
}


def effect_for_event(event: Mapping[str, Any]) -> SubscriptionEffect | None:
    """
    Translate a Stripe event into a SubscriptionEffect.

    Returns None for event types that are not handled.
    """
    handler = EVENT_HANDLERS.get(event["type"])
    if handler is None:
        return None
    return handler(event["data"]["object"])
