"""
Tenancy API endpoints.
"""

from ninja import Router

from apps.accounts.models import Role
from apps.core.auth import AuthContext, get_auth_context
from apps.core.types import AuthenticatedHttpRequest
from apps.core.utils import get_client_ip
from apps.organizations.services import get_by_slug
from apps.tenancy.login_guard import login_guard
from apps.tenancy.routing import (
    Found,
    NavigationOutcome,
    NotFound,
    QueryState,
    TenantOrg,
    UserOrg,
    dashboard_for_role,
    resolve_navigation,
)
from apps.tenancy.schemas import NavigationResponse

router = Router(tags=["tenancy"])


def _tenant_state(subdomain: str | None) -> QueryState:
    if not subdomain:
        return NotFound()
    org = get_by_slug(subdomain)
    if org is None:
        return NotFound()
    return Found(TenantOrg(slug=org.slug, remote_org_id=org.stytch_org_id))


def _user_org_state(auth: AuthContext) -> QueryState:
    org = auth.organization
    if org is None:
        return NotFound()
    return Found(UserOrg(slug=org.slug, onboarding_completed=org.onboarding_completed))


@router.get(
    "/navigation",
    response=NavigationResponse,
    operation_id="resolveNavigation",
    summary="Resolve where the client should navigate",
)
def navigation(request: AuthenticatedHttpRequest, path: str = "/") -> NavigationResponse:
    """
    Evaluate tenant routing for the request host and session.

    Anonymous callers on a known tenant get ``login``. ``trigger_login`` is
    set at most once per client and tenant within the login guard window.
    """
    auth = get_auth_context(request)
    subdomain = getattr(request, "tenant_slug", None)
    development = getattr(request, "is_development_host", False)

    decision = resolve_navigation(
        subdomain=subdomain,
        tenant=_tenant_state(subdomain),
        is_authenticated=auth.is_authenticated,
        user_org=_user_org_state(auth),
        has_owner_role=auth.has_role(Role.OWNER),
        path=path,
        development=development,
    )

    trigger_login = False
    if decision.outcome == NavigationOutcome.LOGIN:
        key = f"{subdomain}:{get_client_ip(request, 'unknown')}"
        trigger_login = login_guard.try_start(key)

    dashboard = None
    if decision.outcome == NavigationOutcome.DASHBOARD and auth.user is not None:
        kind = dashboard_for_role(auth.user.role)
        dashboard = str(kind) if kind else None

    return NavigationResponse(
        outcome=str(decision.outcome),
        subdomain=subdomain,
        path=decision.path,
        redirect_url=decision.redirect_url,
        remote_org_id=decision.remote_org_id,
        trigger_login=trigger_login,
        dashboard=dashboard,
    )
