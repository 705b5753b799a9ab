"""
Django Ninja API configuration.
"""

from django.http import HttpRequest, HttpResponse
from ninja import NinjaAPI

from apps.accounts.api import api_keys_router, users_router
from apps.accounts.api import router as auth_router
from apps.billing.api import router as billing_router
from apps.core.exceptions import ServiceError
from apps.core.logging import get_logger
from apps.organizations.api import admin_router, departments_router
from apps.organizations.api import router as organizations_router
from apps.scheduling.api import bookings_router, events_router, providers_router

logger = get_logger(__name__)

api = NinjaAPI(
    title="Medisched API",
    version="1.0.0",
    description=(
        "Multi-tenant appointment scheduling: organizations, departments, providers, "
        "bookable events and subscription-gated access."
    ),
    openapi_extra={
        "info": {
            "contact": {"name": "API Support"},
        },
        "tags": [
            {"name": "auth", "description": "Current identity"},
            {"name": "admin", "description": "Platform administration (ADMIN role)"},
            {"name": "organizations", "description": "Organization directory and status"},
            {"name": "departments", "description": "Departments within an organization"},
            {"name": "providers", "description": "Bookable professionals"},
            {"name": "events", "description": "Provider availability"},
            {"name": "bookings", "description": "Client reservations"},
            {"name": "billing", "description": "Subscription checkout"},
            {"name": "health", "description": "Service health and readiness checks"},
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {
                    "type": "http",
                    "scheme": "bearer",
                    "description": "API key issued by an administrator. "
                    "Include as: Authorization: Bearer <api_key>",
                }
            }
        },
    },
)


@api.exception_handler(ServiceError)
def service_error_handler(request: HttpRequest, exc: ServiceError) -> HttpResponse:
    """Render business-rule violations as {"detail": message}."""
    logger.info(
        "service_error",
        error_type=type(exc).__name__,
        status_code=exc.status_code,
        detail=exc.message,
    )
    return api.create_response(request, {"detail": exc.message}, status=exc.status_code)


# Register routers
api.add_router("/auth", auth_router)
api.add_router("/admin/users", users_router)
api.add_router("/admin/api-keys", api_keys_router)
api.add_router("/admin", admin_router)
api.add_router("/organizations", organizations_router)
api.add_router("/departments", departments_router)
api.add_router("/providers", providers_router)
api.add_router("/events", events_router)
api.add_router("/bookings", bookings_router)
api.add_router("/subscriptions", billing_router)


@api.get("/health", tags=["health"], operation_id="healthCheck", summary="Health check")
def health_check(request: HttpRequest) -> dict:
    """Health check endpoint for load balancer."""
    return {"status": "ok"}
