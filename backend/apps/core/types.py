"""
Custom type definitions for the application.

These types help mypy understand custom attributes added by middleware.
"""

from typing import TYPE_CHECKING

from django.http import HttpRequest

if TYPE_CHECKING:
    from apps.core.auth import AuthContext


class AuthenticatedHttpRequest(HttpRequest):
    """
    HttpRequest with context added by TenantContextMiddleware and StytchAuthMiddleware.

    Use this type for endpoints that read auth or tenant state.
    """

    auth_context: "AuthContext"
    tenant_slug: str | None
    is_development_host: bool
