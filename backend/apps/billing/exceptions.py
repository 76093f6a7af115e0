"""
Billing service exceptions.

API handlers translate these into HTTP errors; anything else raised by a
billing call is treated as a provider failure.
"""


class BillingError(Exception):
    """Base class for billing failures raised by SubscriptionService."""


class CustomerNotFoundError(BillingError):
    """The user has no billing customer on file."""


class SubscriptionNotFoundError(BillingError):
    """The user has no subscription matching the request."""


class PlanLimitExceededError(BillingError):
    """The user's plan allowance for a feature is used up."""

    def __init__(self, feature: str, limit: int, usage: int):
        self.feature = feature
        self.limit = limit
        self.usage = usage
        super().__init__(f"Plan limit reached for {feature} ({usage}/{limit})")


class SubscriptionAlreadyExistsError(BillingError):
    """The user already has a Stripe subscription that has not ended."""
