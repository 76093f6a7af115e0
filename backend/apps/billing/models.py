"""
Billing models - Stripe subscriptions, plans and usage counters.
"""

import uuid
from decimal import Decimal

from django.db import models

from apps.core.models import TimestampedModel

UNLIMITED = -1

# Usage metric feature name -> key in SubscriptionPlan.usage_limits
FEATURE_LIMITS = {
    "invoices": "invoices_limit",
    "storage_mb": "storage_limit_mb",
    "team_members": "team_members_limit",
    "api_calls": "api_calls_per_month",
}


class Subscription(TimestampedModel):
    """
    Stripe subscription for a user.

    Source of truth is Stripe - synced via webhooks and the
    reconcile_subscriptions command. A row starts as ``pending`` before any
    remote call is made and is never hard-deleted.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        INCOMPLETE = "incomplete", "Incomplete"
        INCOMPLETE_EXPIRED = "incomplete_expired", "Incomplete Expired"
        TRIALING = "trialing", "Trialing"
        ACTIVE = "active", "Active"
        PAST_DUE = "past_due", "Past Due"
        UNPAID = "unpaid", "Unpaid"
        PAUSED = "paused", "Paused"
        CANCELED = "canceled", "Canceled"
        PAYMENT_FAILED = "payment_failed", "Payment Failed"

    # Stripe no longer bills a subscription in these statuses
    ENDED_STATUSES = (Status.CANCELED, Status.INCOMPLETE_EXPIRED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        "accounts.UserProfile",
        on_delete=models.CASCADE,
        related_name="subscription",
    )
    stripe_customer_id = models.CharField(
        max_length=255,
        blank=True,
        db_index=True,
        help_text="Stripe customer ID, e.g. 'cus_xxx'",
    )
    stripe_subscription_id = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        help_text="Stripe subscription ID, e.g. 'sub_xxx'",
    )
    stripe_price_id = models.CharField(
        max_length=255,
        blank=True,
        help_text="Stripe price ID, e.g. 'price_xxx'",
    )
    status = models.CharField(
        max_length=50,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
        help_text="Subscription status from Stripe",
    )
    plan_name = models.CharField(max_length=100, blank=True)
    current_period_start = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Start of current billing period",
    )
    current_period_end = models.DateTimeField(
        null=True,
        blank=True,
        help_text="End of current billing period (next invoice date)",
    )
    cancel_at_period_end = models.BooleanField(
        default=False,
        help_text="If True, subscription will cancel at period end",
    )

    class Meta:
        db_table = "subscriptions"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.user_id} - {self.plan_name or 'no plan'} ({self.status})"

    @property
    def is_active(self) -> bool:
        """Check if subscription is in a usable state."""
        return self.status in (self.Status.ACTIVE, self.Status.TRIALING)

    @property
    def has_live_remote(self) -> bool:
        """True while the row points at a Stripe subscription that can still bill."""
        return bool(self.stripe_subscription_id) and self.status not in self.ENDED_STATUSES


class SubscriptionPlan(TimestampedModel):
    """A billing tier. Reference data, loaded by the seed_plans command."""

    class BillingCycle(models.TextChoices):
        MONTHLY = "monthly", "Monthly"
        YEARLY = "yearly", "Yearly"

    name = models.CharField(max_length=100, unique=True)
    display_name = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    billing_cycle = models.CharField(
        max_length=20,
        choices=BillingCycle.choices,
        default=BillingCycle.MONTHLY,
    )
    stripe_price_id = models.CharField(max_length=255, blank=True, db_index=True)
    features = models.JSONField(default=list, blank=True)
    usage_limits = models.JSONField(
        default=dict,
        blank=True,
        help_text="invoices_limit, storage_limit_mb, team_members_limit, "
        "api_calls_per_month; -1 means unlimited",
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "subscription_plans"
        ordering = ["price"]

    def __str__(self) -> str:
        return self.display_name or self.name

    def limit_for(self, feature: str) -> int | None:
        """
        Limit for a usage feature.

        Returns None when the plan does not limit the feature,
        UNLIMITED (-1) when it is explicitly unlimited.
        """
        key = FEATURE_LIMITS.get(feature)
        if key is None or key not in self.usage_limits:
            return None
        return int(self.usage_limits[key])


class UsageMetric(models.Model):
    """Running usage counter for one feature of a subscription."""

    subscription = models.ForeignKey(
        Subscription,
        on_delete=models.CASCADE,
        related_name="usage_metrics",
    )
    feature = models.CharField(max_length=100)
    usage_count = models.PositiveIntegerField(default=0)
    last_updated = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "subscription_usage"
        ordering = ["feature"]
        constraints = [
            models.UniqueConstraint(
                fields=["subscription", "feature"], name="unique_subscription_feature"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.feature}={self.usage_count}"
