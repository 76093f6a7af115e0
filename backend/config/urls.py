"""
URL configuration for the backend.
"""

from django.contrib import admin
from django.urls import path

from apps.billing.webhooks import stripe_webhook

from .api import api

urlpatterns = [
    path("admin/", admin.site.urls),
    # Webhooks - outside Django Ninja for raw request handling. Both paths
    # are registered with Stripe by existing deployments.
    path("api/stripe/webhook", stripe_webhook, name="stripe-webhook"),
    path("api/webhooks/stripe", stripe_webhook, name="stripe-webhook-legacy"),
    path("api/", api.urls),
]
