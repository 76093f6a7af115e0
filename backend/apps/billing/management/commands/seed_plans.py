"""
Management command to load the default subscription plans.

Idempotent: existing plans are updated in place. Stripe price ids can be
supplied per plan so checkout and webhooks resolve plan names.
Usage: python manage.py seed_plans --price starter=price_xxx
"""

from decimal import Decimal

from django.core.management.base import BaseCommand, CommandError

from apps.billing.models import UNLIMITED, SubscriptionPlan

DEFAULT_PLANS = [
    {
        "name": "starter",
        "display_name": "Starter",
        "price": Decimal("29.00"),
        "features": ["25 invoices per month", "1 team member", "100 MB storage"],
        "usage_limits": {
            "invoices_limit": 25,
            "storage_limit_mb": 100,
            "team_members_limit": 1,
            "api_calls_per_month": UNLIMITED,
        },
    },
    {
        "name": "professional",
        "display_name": "Professional",
        "price": Decimal("79.00"),
        "features": ["500 invoices per month", "5 team members", "1 GB storage"],
        "usage_limits": {
            "invoices_limit": 500,
            "storage_limit_mb": 1000,
            "team_members_limit": 5,
            "api_calls_per_month": UNLIMITED,
        },
    },
    {
        "name": "enterprise",
        "display_name": "Enterprise",
        "price": Decimal("199.00"),
        "features": ["Unlimited invoices", "Unlimited team members", "10 GB storage"],
        "usage_limits": {
            "invoices_limit": UNLIMITED,
            "storage_limit_mb": 10000,
            "team_members_limit": UNLIMITED,
            "api_calls_per_month": UNLIMITED,
        },
    },
]


class Command(BaseCommand):
    help = "Create or update the default subscription plans"

    def add_arguments(self, parser):
        parser.add_argument(
            "--price",
            action="append",
            default=[],
            metavar="PLAN=PRICE_ID",
            help="Stripe price id for a plan, e.g. starter=price_123 (repeatable)",
        )

    def handle(self, *args, **options):
        price_ids = {}
        for value in options["price"]:
            plan_name, sep, price_id = value.partition("=")
            if not sep or not price_id:
                raise CommandError(f"Expected PLAN=PRICE_ID, got {value!r}")
            price_ids[plan_name] = price_id

        unknown = set(price_ids) - {plan["name"] for plan in DEFAULT_PLANS}
        if unknown:
            raise CommandError(f"Unknown plan(s): {', '.join(sorted(unknown))}")

        for plan in DEFAULT_PLANS:
            defaults = {
                "display_name": plan["display_name"],
                "price": plan["price"],
                "billing_cycle": SubscriptionPlan.BillingCycle.MONTHLY,
                "features": plan["features"],
                "usage_limits": plan["usage_limits"],
                "is_active": True,
            }
            if plan["name"] in price_ids:
                defaults["stripe_price_id"] = price_ids[plan["name"]]

            _, created = SubscriptionPlan.objects.update_or_create(
                name=plan["name"], defaults=defaults
            )
            action = "Created" if created else "Updated"
            self.stdout.write(f"{action} plan: {plan['name']}")

        self.stdout.write(self.style.SUCCESS(f"Seeded {len(DEFAULT_PLANS)} plans"))
