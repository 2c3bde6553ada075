"""
Core middleware.

TenantContextMiddleware resolves the tenant subdomain from the Host header.
StytchAuthMiddleware validates the Stytch session JWT and attaches an
AuthContext to the request.
"""

from collections.abc import Callable
from typing import Any

from django.http import HttpRequest, HttpResponse
from stytch.core.response_base import StytchError

from apps.core.auth import AuthContext, Identity
from apps.core.logging import bind_member_context, bind_tenant_context, clear_contextvars, get_logger

logger = get_logger(__name__)

PUBLIC_PATH_PREFIXES = (
    "/api/v1/health",
    "/api/v1/docs",
    "/api/v1/openapi.json",
    "/admin/",
)


class TenantContextMiddleware:
    """
    Extracts the tenant subdomain from the request host.

    Sets request.tenant_slug (None on the root domain) and
    request.is_development_host for use in views and services.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        from apps.tenancy.subdomains import is_development_hostname, resolve_tenant

        host = request.META.get("HTTP_HOST", "") or request.META.get("SERVER_NAME", "")
        request.tenant_slug = resolve_tenant(host)  # type: ignore[attr-defined]
        request.is_development_host = is_development_hostname(host)  # type: ignore[attr-defined]

        bind_tenant_context(request.tenant_slug)  # type: ignore[attr-defined]
        try:
            return self.get_response(request)
        finally:
            clear_contextvars()


class StytchAuthMiddleware:
    """
    Authenticates Bearer session JWTs against Stytch.

    Local validation (``sessions.authenticate_jwt``) is tried first. When the
    member has no local User yet, the full session is fetched to build the
    Identity so that onboarding can run before any local record exists.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        request.auth_context = AuthContext()  # type: ignore[attr-defined]

        if not self._is_public_path(request.path):
            token = self._get_bearer_token(request)
            if token:
                request.auth_context = self._authenticate_jwt(request, token)  # type: ignore[attr-defined]

        return self.get_response(request)

    @staticmethod
    def _is_public_path(path: str) -> bool:
        return any(path.startswith(prefix) for prefix in PUBLIC_PATH_PREFIXES)

    @staticmethod
    def _get_bearer_token(request: HttpRequest) -> str | None:
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header.startswith("Bearer "):
            return None
        return header[len("Bearer ") :].strip() or None

    def _authenticate_jwt(self, request: HttpRequest, token: str) -> AuthContext:
        from apps.accounts.models import User
        from apps.accounts.stytch_client import get_stytch_client, role_ids_from_stytch

        client = get_stytch_client()
        try:
            response = client.sessions.authenticate_jwt(session_jwt=token)
        except StytchError as e:
            logger.info("session_jwt_rejected", error=e.details.error_message)
            return AuthContext(failed=True)

        member_session = response.member_session
        member_id = member_session.member_id
        session_roles = tuple(role_ids_from_stytch(getattr(member_session, "roles", [])))

        user = (
            User.objects.select_related("organization")
            .filter(stytch_member_id=member_id, is_active=True)
            .first()
        )
        if user is not None:
            identity = Identity(
                subject=user.email,
                email=user.email,
                name=user.name,
                member_id=member_id,
                remote_org_id=getattr(member_session, "organization_id", "") or "",
                roles=session_roles,
            )
            bind_member_context(user.email, user_id=user.id, role=user.role)
            return AuthContext(identity=identity, user=user)

        # No local record yet: fetch the full session for email/name
        try:
            full = client.sessions.authenticate(session_jwt=token)
        except StytchError as e:
            logger.info("session_authenticate_failed", error=e.details.error_message)
            return AuthContext(failed=True)

        identity = self._identity_from_member(full.member, full.organization)
        user = (
            User.objects.select_related("organization")
            .filter(email=identity.email, is_active=True)
            .first()
        )
        bind_member_context(identity.email)
        return AuthContext(identity=identity, user=user)

    @staticmethod
    def _identity_from_member(member: Any, organization: Any) -> Identity:
        from apps.accounts.stytch_client import role_ids_from_stytch

        email = member.email_address.lower()
        return Identity(
            subject=email,
            email=email,
            name=member.name or "",
            member_id=member.member_id,
            remote_org_id=organization.organization_id if organization is not None else "",
            roles=tuple(role_ids_from_stytch(getattr(member, "roles", []))),
        )
