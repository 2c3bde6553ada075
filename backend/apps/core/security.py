"""
Core security - authentication classes for API.
"""

from ninja.security import HttpBearer


class BearerAuth(HttpBearer):
    """
    Bearer token authentication for API endpoints.

    StytchAuthMiddleware has already validated the session JWT by the time
    this runs. Requests whose token failed validation are rejected here with
    a 401; endpoints then read ``request.auth_context`` for the identity.
    """

    def authenticate(self, request, token: str) -> str | None:
        context = getattr(request, "auth_context", None)
        if context is None or not context.is_authenticated:
            return None
        return token
