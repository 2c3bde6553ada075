"""
Django Ninja API configuration.
"""

from django.http import HttpRequest, HttpResponse
from ninja import NinjaAPI

from apps.accounts.api import router as auth_router
from apps.accounts.api import staff_router
from apps.analytics.api import router as analytics_router
from apps.core.exceptions import AppError, RateLimitedError
from apps.core.logging import get_logger
from apps.inventory.api import router as products_router
from apps.notifications.api import briefing_router
from apps.notifications.api import router as notifications_router
from apps.orders.api import router as orders_router
from apps.organizations.api import onboarding_router
from apps.organizations.api import router as organizations_router
from apps.tenancy.api import router as tenancy_router

logger = get_logger(__name__)

api = NinjaAPI(
    title="WhatThePack API",
    version="1.0.0",
    description="Multi-tenant logistics back-office API with Stytch authentication.",
    openapi_extra={
        "info": {
            "contact": {"name": "API Support"},
        },
        "tags": [
            {"name": "tenancy", "description": "Subdomain routing decisions"},
            {"name": "onboarding", "description": "Store creation and pre-login readiness"},
            {"name": "organizations", "description": "Tenant lookup and settings"},
            {"name": "auth", "description": "Current identity"},
            {"name": "staff", "description": "Admins and packers"},
            {"name": "inventory", "description": "Products and stock levels"},
            {"name": "orders", "description": "Order lifecycle"},
            {"name": "briefing", "description": "Owner daily briefing"},
            {"name": "notifications", "description": "Notification seen state"},
            {"name": "health", "description": "Service health and readiness checks"},
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {
                    "type": "http",
                    "scheme": "bearer",
                    "bearerFormat": "JWT",
                    "description": "Stytch session JWT. Include as: Authorization: Bearer <session_jwt>",
                }
            }
        },
    },
)


@api.exception_handler(AppError)
def app_error_handler(request: HttpRequest, exc: AppError) -> HttpResponse:
    if exc.status_code >= 500:
        logger.warning("app_error", error=type(exc).__name__, detail=str(exc), path=request.path)
    response = api.create_response(request, {"detail": str(exc)}, status=exc.status_code)
    if isinstance(exc, RateLimitedError) and exc.retry_after:
        response["Retry-After"] = str(exc.retry_after)
    return response


# Register routers
api.add_router("/tenancy", tenancy_router)
api.add_router("/onboarding", onboarding_router)
api.add_router("/organizations", organizations_router)
api.add_router("/auth", auth_router)
api.add_router("/staff", staff_router)
api.add_router("/products", products_router)
api.add_router("/orders", orders_router)
api.add_router("/briefing", briefing_router)
api.add_router("/notifications", notifications_router)
api.add_router("/analytics", analytics_router)


@api.get("/health", tags=["health"], operation_id="healthCheck", summary="Health check")
def health_check(request: HttpRequest) -> dict:
    """Health check endpoint for load balancer."""
    return {"status": "ok"}
