"""
Dashboard services - aggregates over the caller's own records.
"""

from decimal import Decimal
from typing import Any

from django.db.models import Count, Sum

from apps.accounts.models import UserProfile
from apps.billing.models import Subscription
from apps.clients.models import Client
from apps.invoices.models import Invoice
from apps.quotes.models import Quote

OPEN_QUOTE_STATUSES = [Quote.Status.DRAFT, Quote.Status.SENT, Quote.Status.VIEWED]


def get_summary(user: UserProfile) -> dict[str, Any]:
    """Invoice counts and totals by status, open quotes and subscription state."""
    rows = (
        Invoice.objects.filter(user=user)
        .values("status")
        .annotate(count=Count("id"), total=Sum("total_amount"))
    )
    by_status = {row["status"]: row for row in rows}

    summary: dict[str, Any] = {}
    for status in Invoice.Status.values:
        row = by_status.get(status)
        summary[status] = {
            "count": row["count"] if row else 0,
            "total_amount": (row["total"] or Decimal("0")) if row else Decimal("0"),
        }

    subscription = Subscription.objects.filter(user=user).first()
    summary.update(
        open_quotes=Quote.objects.filter(user=user, status__in=OPEN_QUOTE_STATUSES).count(),
        clients=Client.objects.filter(user=user).count(),
        subscription_status=subscription.status if subscription else None,
        plan_name=(subscription.plan_name or None) if subscription else None,
    )
    return summary
