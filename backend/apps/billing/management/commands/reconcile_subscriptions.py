"""
Management command to reconcile local subscriptions with Stripe.

Run periodically. Every subscription with a Stripe id is re-read from
Stripe and applied like a customer.subscription.updated event. Rows still
``pending`` without a Stripe id after the threshold were abandoned before
the remote call succeeded and are expired.
"""

from datetime import timedelta

import stripe
from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.billing.models import Subscription
from apps.billing.services import get_subscription_service
from apps.core.logging import get_logger
from config.settings.base import settings

logger = get_logger(__name__)


class Command(BaseCommand):
    """Sync local subscription rows with Stripe and expire stale pending rows."""

    help = "Reconcile local subscriptions with Stripe"

    def add_arguments(self, parser):
        parser.add_argument(
            "--pending-after-minutes",
            type=int,
            default=settings.RECONCILE_PENDING_AFTER_MINUTES,
            help="Age after which a pending row without a Stripe id is stale "
            f"(default: {settings.RECONCILE_PENDING_AFTER_MINUTES})",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report what would change without writing",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        cutoff = timezone.now() - timedelta(minutes=options["pending_after_minutes"])

        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN - no changes will be made"))

        synced, failed = self._sync_remote(dry_run)
        expired = self._expire_stale_pending(cutoff, dry_run)

        logger.info(
            "subscriptions_reconciled",
            synced=synced,
            failed=failed,
            expired=expired,
            dry_run=dry_run,
        )
        self.stdout.write(
            self.style.SUCCESS(
                f"Reconciled subscriptions: {synced} synced, {failed} failed, "
                f"{expired} stale pending"
            )
        )

    def _sync_remote(self, dry_run: bool) -> tuple[int, int]:
        service = get_subscription_service()
        synced = failed = 0

        rows = Subscription.objects.exclude(stripe_subscription_id__isnull=True).exclude(
            stripe_subscription_id=""
        )
        for subscription in rows.iterator():
            if dry_run:
                self.stdout.write(f"  would sync {subscription.stripe_subscription_id}")
                synced += 1
                continue
            try:
                service.sync_subscription_from_stripe(subscription)
            except stripe.StripeError as e:
                failed += 1
                logger.warning(
                    "subscription_reconcile_failed",
                    stripe_subscription_id=subscription.stripe_subscription_id,
                    error=str(e),
                )
                continue
            synced += 1

        return synced, failed

    def _expire_stale_pending(self, cutoff, dry_run: bool) -> int:
        stale = Subscription.objects.filter(
            status=Subscription.Status.PENDING,
            stripe_subscription_id__isnull=True,
            updated_at__lt=cutoff,
        )
        count = 0
        for subscription in stale:
            logger.warning(
                "subscription_pending_stale",
                subscription_id=str(subscription.id),
                user_id=str(subscription.user_id),
            )
            count += 1

        if not dry_run and count:
            stale.update(status=Subscription.Status.INCOMPLETE_EXPIRED, updated_at=timezone.now())
        return count
