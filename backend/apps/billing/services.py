"""
Billing services - Stripe integration logic.

All Stripe API calls go through SubscriptionService so tests can hand it a
mock client. External calls must NOT be inside database transactions.
"""

from collections.abc import Mapping
from functools import lru_cache
from types import ModuleType
from typing import Any
from uuid import UUID

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F

from apps.accounts.models import UserProfile
from apps.billing.events import SubscriptionEffect, effect_for_event, subscription_fields
from apps.billing.exceptions import (
    CustomerNotFoundError,
    PlanLimitExceededError,
    SubscriptionAlreadyExistsError,
    SubscriptionNotFoundError,
)
from apps.billing.models import (
    FEATURE_LIMITS,
    UNLIMITED,
    Subscription,
    SubscriptionPlan,
    UsageMetric,
)
from apps.billing.stripe_client import get_stripe
from apps.core.logging import get_logger
from apps.invoices.services import set_invoice_status
from config.settings.base import settings

logger = get_logger(__name__)


def _parse_uuid(value: Any) -> UUID | None:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


def _is_superseded(subscription: Subscription, effect: SubscriptionEffect) -> bool:
    """True when the event is about an older Stripe subscription than the live one on the row."""
    return (
        bool(effect.stripe_subscription_id)
        and subscription.stripe_subscription_id != effect.stripe_subscription_id
        and subscription.has_live_remote
    )


class SubscriptionService:
    """
    Subscription lifecycle, usage counters and Stripe sessions for a user.

    Args:
        stripe: Configured Stripe module (see apps.billing.stripe_client)
    """

    def __init__(self, stripe: ModuleType):
        self.stripe = stripe

    # Customers

    def create_customer(self, user: UserProfile, email: str) -> str:
        """
        Create a Stripe customer and store its id on the user's subscription row.

        A new row starts as ``pending``. If the local write fails the remote
        customer is left behind; it is logged so it can be cleaned up.

        Returns:
            The Stripe customer ID
        """
        customer = self.stripe.Customer.create(
            email=email,
            metadata={"user_id": str(user.id)},
        )
        customer_id = customer["id"]

        try:
            Subscription.objects.update_or_create(
                user=user,
                defaults={"stripe_customer_id": customer_id},
            )
        except DatabaseError:
            logger.exception(
                "stripe_customer_orphaned",
                customer_id=customer_id,
                user_id=str(user.id),
            )
            raise

        logger.info("stripe_customer_created", customer_id=customer_id, user_id=str(user.id))
        return customer_id

    def get_customer(self, user: UserProfile) -> Any | None:
        """Fetch the user's Stripe customer, or None if none is on file."""
        subscription = self.get_subscription(user)
        if subscription is None or not subscription.stripe_customer_id:
            return None
        return self.stripe.Customer.retrieve(subscription.stripe_customer_id)

    def get_or_create_customer(self, user: UserProfile, email: str) -> str:
        subscription = self.get_subscription(user)
        if subscription is not None and subscription.stripe_customer_id:
            return subscription.stripe_customer_id
        return self.create_customer(user, email)

    # Subscriptions

    def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        user: UserProfile,
        plan_name: str,
    ) -> tuple[Subscription, str | None]:
        """
        Create a Stripe subscription awaiting its first payment.

        The local row is written as ``pending`` before Stripe is called and
        confirmed afterwards. When the confirmation write fails the row stays
        pending until a webhook or reconcile_subscriptions repairs it.

        Returns:
            (subscription, client_secret) where client_secret confirms the
            first invoice's payment in the browser

        Raises:
            SubscriptionAlreadyExistsError: If the user's current Stripe
                subscription has not ended
        """
        existing = self.get_subscription(user)
        if existing is not None and existing.has_live_remote:
            raise SubscriptionAlreadyExistsError(existing.stripe_subscription_id)

        Subscription.objects.update_or_create(
            user=user,
            defaults={
                "stripe_subscription_id": None,
                "stripe_customer_id": customer_id,
                "stripe_price_id": price_id,
                "plan_name": plan_name,
                "status": Subscription.Status.PENDING,
            },
        )

        remote = self.stripe.Subscription.create(
            customer=customer_id,
            items=[{"price": price_id}],
            payment_behavior="default_incomplete",
            payment_settings={"save_default_payment_method": "on_subscription"},
            expand=["latest_invoice.confirmation_secret"],
            metadata={"user_id": str(user.id), "plan_name": plan_name},
        )

        changes = subscription_fields(remote)
        changes["stripe_subscription_id"] = remote["id"]
        changes["plan_name"] = plan_name
        try:
            subscription = self._update_user_subscription(user, changes)
        except DatabaseError:
            logger.exception(
                "subscription_confirmation_write_failed",
                stripe_subscription_id=remote["id"],
                user_id=str(user.id),
            )
            raise

        logger.info(
            "subscription_created",
            stripe_subscription_id=remote["id"],
            status=remote["status"],
            user_id=str(user.id),
        )
        return subscription, _client_secret(remote)

    def cancel_subscription(self, stripe_subscription_id: str, user: UserProfile) -> Subscription:
        """
        Cancel a subscription in Stripe and mirror the result locally.

        Raises:
            SubscriptionNotFoundError: If the user has no such subscription
        """
        subscription = Subscription.objects.filter(
            user=user, stripe_subscription_id=stripe_subscription_id
        ).first()
        if subscription is None:
            raise SubscriptionNotFoundError(stripe_subscription_id)

        remote = self.stripe.Subscription.cancel(stripe_subscription_id)

        changes = subscription_fields(remote)
        subscription = self._update_user_subscription(user, changes)
        logger.info(
            "subscription_canceled",
            stripe_subscription_id=stripe_subscription_id,
            user_id=str(user.id),
        )
        return subscription

    def get_subscription(self, user: UserProfile) -> Subscription | None:
        """The user's subscription row, or None when there is none."""
        return Subscription.objects.filter(user=user).first()

    def get_current_subscription(self, user: UserProfile) -> Subscription | None:
        """The user's subscription if it is active or trialing."""
        return Subscription.objects.filter(
            user=user,
            status__in=[Subscription.Status.ACTIVE, Subscription.Status.TRIALING],
        ).first()

    def sync_subscription_from_stripe(self, subscription: Subscription) -> Subscription | None:
        """
        Re-read a subscription from Stripe and apply it like an update event.

        Used by reconcile_subscriptions and after embedded payment
        confirmation.
        """
        if not subscription.stripe_subscription_id:
            raise SubscriptionNotFoundError(str(subscription.id))

        remote = self.stripe.Subscription.retrieve(subscription.stripe_subscription_id)
        return self.apply_effect(
            effect_for_event({"type": "customer.subscription.updated", "data": {"object": remote}})
        )

    # Webhooks

    def handle_webhook_event(self, event: Mapping[str, Any]) -> Subscription | None:
        """
        Apply a verified Stripe event.

        Unhandled event types are ignored. Errors propagate so the webhook
        view can answer 500 and Stripe retries.
        """
        effect = effect_for_event(event)
        if effect is None:
            logger.debug("stripe_webhook_unhandled_event", event_type=event["type"])
            return None
        return self.apply_effect(effect)

    def apply_effect(self, effect: SubscriptionEffect | None) -> Subscription | None:
        """
        Write a SubscriptionEffect to the database.

        The target row is locked for the duration of the update. A user with
        no row yet gets one when the effect names them.
        """
        if effect is None:
            return None

        with transaction.atomic():
            subscription = None
            if effect.changes:
                subscription = self._locate_for_update(effect)
                if subscription is None:
                    subscription = self._create_for_effect(effect)
                    if subscription is None:
                        logger.warning(
                            "subscription_effect_target_missing",
                            stripe_subscription_id=effect.stripe_subscription_id,
                            stripe_customer_id=effect.stripe_customer_id,
                            user_id=effect.user_id,
                        )
                elif _is_superseded(subscription, effect):
                    logger.info(
                        "subscription_effect_superseded",
                        stripe_subscription_id=effect.stripe_subscription_id,
                        current_subscription_id=subscription.stripe_subscription_id,
                    )
                    subscription = None

            if subscription is not None:
                changes = self._with_plan_name(effect.changes)
                for field, value in changes.items():
                    setattr(subscription, field, value)
                subscription.save()
                logger.info(
                    "subscription_effect_applied",
                    subscription_id=str(subscription.id),
                    status=subscription.status,
                )

            if effect.invoice_id and effect.invoice_status:
                set_invoice_status(effect.invoice_id, effect.invoice_status)

        return subscription

    def _locate_for_update(self, effect: SubscriptionEffect) -> Subscription | None:
        rows = Subscription.objects.select_for_update()
        if effect.stripe_subscription_id:
            subscription = rows.filter(stripe_subscription_id=effect.stripe_subscription_id).first()
            if subscription is not None:
                return subscription
        if effect.stripe_customer_id:
            subscription = rows.filter(stripe_customer_id=effect.stripe_customer_id).first()
            if subscription is not None:
                return subscription
        user_id = _parse_uuid(effect.user_id)
        if user_id is not None:
            return rows.filter(user_id=user_id).first()
        return None

    def _create_for_effect(self, effect: SubscriptionEffect) -> Subscription | None:
        user_id = _parse_uuid(effect.user_id)
        if user_id is None or not UserProfile.objects.filter(id=user_id).exists():
            return None
        return Subscription.objects.create(user_id=user_id)

    def _with_plan_name(self, changes: dict[str, Any]) -> dict[str, Any]:
        price_id = changes.get("stripe_price_id")
        if not price_id or changes.get("plan_name"):
            return changes
        plan = SubscriptionPlan.objects.filter(stripe_price_id=price_id).first()
        if plan is None:
            return changes
        return {**changes, "plan_name": plan.name}

    def _update_user_subscription(self, user: UserProfile, changes: dict[str, Any]) -> Subscription:
        with transaction.atomic():
            subscription = Subscription.objects.select_for_update().get(user=user)
            for field, value in self._with_plan_name(changes).items():
                setattr(subscription, field, value)
            subscription.save()
        return subscription

    # Plans and usage

    def get_subscription_plans(self) -> list[SubscriptionPlan]:
        return list(SubscriptionPlan.objects.filter(is_active=True).order_by("price"))

    def get_plan(self, subscription: Subscription) -> SubscriptionPlan | None:
        """The plan a subscription is on, by plan name and then by price."""
        if subscription.plan_name:
            plan = SubscriptionPlan.objects.filter(name__iexact=subscription.plan_name).first()
            if plan is not None:
                return plan
        if subscription.stripe_price_id:
            return SubscriptionPlan.objects.filter(
                stripe_price_id=subscription.stripe_price_id
            ).first()
        return None

    def get_usage_metrics(self, subscription_id: UUID) -> list[UsageMetric]:
        return list(UsageMetric.objects.filter(subscription_id=subscription_id).order_by("feature"))

    def update_usage(self, subscription_id: UUID, feature: str, increment: int = 1) -> UsageMetric:
        """
        Add ``increment`` to a feature's running usage count.

        The row is created on first use. A negative increment may lower the
        count but never below zero.

        Raises:
            ValueError: If the new count would be negative
        """
        with transaction.atomic():
            metric = (
                UsageMetric.objects.select_for_update()
                .filter(subscription_id=subscription_id, feature=feature)
                .first()
            )
            if metric is None:
                if increment < 0:
                    raise ValueError(f"Usage for {feature} cannot go below zero")
                try:
                    with transaction.atomic():
                        metric = UsageMetric.objects.create(
                            subscription_id=subscription_id,
                            feature=feature,
                            usage_count=increment,
                        )
                except IntegrityError:
                    # Created concurrently; fall through to the increment path.
                    metric = UsageMetric.objects.select_for_update().get(
                        subscription_id=subscription_id, feature=feature
                    )
                else:
                    logger.info("usage_updated", feature=feature, usage_count=metric.usage_count)
                    return metric

            if metric.usage_count + increment < 0:
                raise ValueError(f"Usage for {feature} cannot go below zero")
            UsageMetric.objects.filter(pk=metric.pk).update(
                usage_count=F("usage_count") + increment
            )
            metric.refresh_from_db()

        logger.info("usage_updated", feature=feature, usage_count=metric.usage_count)
        return metric

    def get_usage_summary(self, subscription: Subscription) -> list[dict[str, Any]]:
        """
        Usage against each plan limit.

        ``limit`` and ``remaining`` are -1 for unlimited features and None
        when the subscription has no known plan.
        """
        plan = self.get_plan(subscription)
        usage = {m.feature: m.usage_count for m in self.get_usage_metrics(subscription.id)}

        summary = []
        for feature in FEATURE_LIMITS:
            used = usage.get(feature, 0)
            limit = plan.limit_for(feature) if plan is not None else None
            if limit is None:
                remaining = None
            elif limit == UNLIMITED:
                remaining = UNLIMITED
            else:
                remaining = max(limit - used, 0)
            summary.append(
                {"feature": feature, "usage": used, "limit": limit, "remaining": remaining}
            )
        return summary

    def check_usage_limit(self, user: UserProfile, feature: str) -> None:
        """
        Raise PlanLimitExceededError if the user's plan allowance is used up.

        Users without a subscription or plan, and features the plan does not
        limit, pass.
        """
        subscription = self.get_subscription(user)
        if subscription is None:
            return
        plan = self.get_plan(subscription)
        if plan is None:
            return
        limit = plan.limit_for(feature)
        if limit is None or limit == UNLIMITED:
            return

        metric = UsageMetric.objects.filter(subscription=subscription, feature=feature).first()
        used = metric.usage_count if metric is not None else 0
        if used >= limit:
            logger.info("plan_limit_reached", feature=feature, limit=limit, user_id=str(user.id))
            raise PlanLimitExceededError(feature, limit, used)

    # Hosted sessions

    def create_checkout_session(self, user: UserProfile, price_id: str) -> str:
        """
        Create a Stripe Checkout Session for a new subscription.

        Returns the checkout session URL.
        """
        customer_id = self.get_or_create_customer(user, user.email)
        metadata = {"user_id": str(user.id)}

        session = self.stripe.checkout.Session.create(
            customer=customer_id,
            mode="subscription",
            payment_method_types=["card"],
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=f"{settings.APP_URL}/dashboard?success=true",
            cancel_url=f"{settings.APP_URL}/pricing",
            metadata=metadata,
            subscription_data={"metadata": metadata},
        )

        logger.info("checkout_session_created", session_id=session["id"], user_id=str(user.id))
        return session["url"]

    def create_portal_session(self, user: UserProfile) -> str:
        """
        Create a Stripe Customer Portal session.

        Raises:
            CustomerNotFoundError: If the user has no Stripe customer
        """
        subscription = self.get_subscription(user)
        if subscription is None or not subscription.stripe_customer_id:
            raise CustomerNotFoundError(str(user.id))

        session = self.stripe.billing_portal.Session.create(
            customer=subscription.stripe_customer_id,
            return_url=f"{settings.APP_URL}/dashboard",
        )
        return session["url"]


def _client_secret(remote: Mapping[str, Any]) -> str | None:
    invoice = remote.get("latest_invoice")
    if not invoice or isinstance(invoice, str):
        return None
    secret = invoice.get("confirmation_secret") or {}
    return secret.get("client_secret")


@lru_cache(maxsize=1)
def get_subscription_service() -> SubscriptionService:
    """The process-wide SubscriptionService, built on first use."""
    return SubscriptionService(stripe=get_stripe())
