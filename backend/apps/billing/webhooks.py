"""
Stripe webhook handler.

This is a plain Django view (not Django Ninja) because signature
verification needs the raw request body. It is mounted at both
/api/stripe/webhook and /api/webhooks/stripe.
"""

import stripe
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from apps.billing.services import get_subscription_service
from apps.billing.stripe_client import get_stripe
from apps.core.logging import bind_contextvars, get_logger
from apps.core.webhooks import is_webhook_processed, mark_webhook_processed
from config.settings.base import settings

logger = get_logger(__name__)

WEBHOOK_SOURCE = "stripe"


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> JsonResponse:
    """
    Handle Stripe webhook events.

    Verifies the signature, skips events that were already applied, and
    hands the event to SubscriptionService. Answers 500 when applying the
    event fails so Stripe retries with exponential backoff.
    """
    payload = request.body
    sig_header = request.headers.get("Stripe-Signature")

    if not sig_header:
        logger.warning("stripe_webhook_missing_signature")
        return JsonResponse({"error": "Missing Stripe-Signature header"}, status=400)

    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.error("stripe_webhook_secret_not_configured")
        return JsonResponse({"error": "Webhook secret not configured"}, status=500)

    get_stripe()  # Ensure Stripe is configured
    try:
        event = stripe.Webhook.construct_event(
            payload,
            sig_header,
            settings.STRIPE_WEBHOOK_SECRET,
        )
    except ValueError as e:
        logger.warning("stripe_webhook_invalid_payload", error=str(e))
        return JsonResponse({"error": "Invalid payload"}, status=400)
    except stripe.SignatureVerificationError as e:
        logger.warning("stripe_webhook_invalid_signature", error=str(e))
        return JsonResponse({"error": "Invalid signature"}, status=400)

    event_id = event["id"]
    event_type = event["type"]
    bind_contextvars(**{"stripe.event_id": event_id, "stripe.event_type": event_type})
    logger.info("stripe_webhook_received")

    if is_webhook_processed(WEBHOOK_SOURCE, event_id):
        logger.info("stripe_webhook_duplicate")
        return JsonResponse({"received": True, "duplicate": True})

    try:
        get_subscription_service().handle_webhook_event(event)
    except Exception:
        logger.exception("stripe_webhook_handler_error")
        return JsonResponse({"error": "Webhook processing failed"}, status=500)

    mark_webhook_processed(WEBHOOK_SOURCE, event_id, event_type)
    return JsonResponse({"received": True})
