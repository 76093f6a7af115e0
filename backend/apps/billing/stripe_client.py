"""
Stripe SDK setup for BuildLedger.

SubscriptionService receives the configured module as a constructor
argument; nothing else in the project talks to the SDK directly.
"""

from types import ModuleType

import stripe

from config.settings.base import settings

# Subscriptions on this version expand latest_invoice.confirmation_secret
# for the embedded payment form.
STRIPE_API_VERSION = "2025-06-30.basil"

STRIPE_MAX_NETWORK_RETRIES = 2

APP_INFO_NAME = "BuildLedger"


def get_stripe() -> ModuleType:
    """Return the stripe module with BuildLedger's key, API version and retry policy applied."""
    stripe.api_key = settings.STRIPE_SECRET_KEY
    stripe.api_version = STRIPE_API_VERSION
    stripe.max_network_retries = STRIPE_MAX_NETWORK_RETRIES
    stripe.set_app_info(APP_INFO_NAME, url=settings.APP_URL)
    return stripe
