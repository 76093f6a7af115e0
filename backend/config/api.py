"""
Django Ninja API configuration.

Every error response, whatever raised it, has the body {"error": "<message>"}.
"""

from django.http import Http404, HttpRequest, HttpResponse
from ninja import NinjaAPI
from ninja.errors import AuthenticationError, HttpError, ValidationError

from apps.billing.api import router as subscriptions_router
from apps.billing.api import stripe_router
from apps.clients.api import router as clients_router
from apps.core.logging import get_logger
from apps.dashboard.api import router as dashboard_router
from apps.invoices.api import router as invoices_router
from apps.library.api import router as library_router
from apps.quotes.api import public_router
from apps.quotes.api import router as quotes_router

logger = get_logger(__name__)

api = NinjaAPI(
    title="BuildLedger API",
    version="1.0.0",
    description="Invoicing and quoting for contractors, with Stripe subscription billing.",
    openapi_extra={
        "tags": [
            {"name": "invoices", "description": "Invoices and their line items"},
            {"name": "quotes", "description": "Quotes, sharing and conversion to invoices"},
            {"name": "subscriptions", "description": "Plans, subscriptions and usage"},
            {"name": "stripe", "description": "Stripe Checkout and Customer Portal"},
            {"name": "health", "description": "Service health checks"},
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {
                    "type": "http",
                    "scheme": "bearer",
                    "description": "Supabase session access token. "
                    "Include as: Authorization: Bearer <access_token>",
                }
            }
        },
    },
)

# Register routers
api.add_router("/invoices", invoices_router)
api.add_router("/quotes", quotes_router)
api.add_router("/clients", clients_router)
api.add_router("/library", library_router)
api.add_router("/dashboard", dashboard_router)
api.add_router("/subscriptions", subscriptions_router)
api.add_router("/stripe", stripe_router)
api.add_router("/public", public_router)


def _error(request: HttpRequest, message: str, status: int) -> HttpResponse:
    return api.create_response(request, {"error": message}, status=status)


@api.exception_handler(HttpError)
def http_error(request: HttpRequest, exc: HttpError) -> HttpResponse:
    return _error(request, str(exc), exc.status_code)


@api.exception_handler(AuthenticationError)
def authentication_error(request: HttpRequest, exc: AuthenticationError) -> HttpResponse:
    return _error(request, "Unauthorized", 401)


@api.exception_handler(ValidationError)
def validation_error(request: HttpRequest, exc: ValidationError) -> HttpResponse:
    """Report the first invalid field as a 400."""
    first = exc.errors[0] if exc.errors else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "payload")]
    field = ".".join(location) or "request"
    return _error(request, f"Invalid {field}: {first.get('msg', 'invalid value')}", 400)


@api.exception_handler(Http404)
def not_found(request: HttpRequest, exc: Http404) -> HttpResponse:
    return _error(request, "Not found", 404)


@api.exception_handler(Exception)
def unhandled_error(request: HttpRequest, exc: Exception) -> HttpResponse:
    logger.exception("unhandled_api_error", error_type=type(exc).__name__)
    return _error(request, "Internal Server Error", 500)


@api.get("/health", tags=["health"], operation_id="healthCheck", summary="Health check")
def health_check(request: HttpRequest) -> dict:
    """Health check endpoint for load balancer."""
    return {"status": "ok"}
