"""
Tenant navigation state machine.

Decides where a request on a given host should go from four inputs: the
subdomain, whether the subdomain's organization exists, whether the caller
is authenticated, and the caller's own organization. Lookups that have not
completed are modelled as ``Loading``; completed lookups are ``NotFound`` or
``Found``.

The function is pure. Callers re-evaluate it after every navigation; there
are no explicit transition events.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

from apps.tenancy.subdomains import build_org_url

T = TypeVar("T")

ONBOARDING_PATH = "/onboarding"
DASHBOARD_PATH = "/dashboard"


@dataclass(frozen=True)
class Loading:
    """Lookup still in flight."""


@dataclass(frozen=True)
class NotFound:
    """Lookup completed with no record."""


@dataclass(frozen=True)
class Found(Generic[T]):
    """Lookup completed with a record."""

    value: T


QueryState = Loading | NotFound | Found


@dataclass(frozen=True)
class TenantOrg:
    """The organization addressed by the current subdomain."""

    slug: str
    remote_org_id: str = ""


@dataclass(frozen=True)
class UserOrg:
    """The organization the authenticated user belongs to."""

    slug: str
    onboarding_completed: bool


class NavigationOutcome(StrEnum):
    MARKETING = "marketing"
    LOADING = "loading"
    NOT_FOUND = "not_found"
    LOGIN = "login"
    REDIRECT = "redirect"
    ONBOARDING = "onboarding"
    DASHBOARD = "dashboard"
    PENDING_ROLE = "pending_role"


@dataclass(frozen=True)
class NavigationDecision:
    outcome: NavigationOutcome
    path: str | None = None
    redirect_url: str | None = None
    remote_org_id: str | None = None


class DashboardKind(StrEnum):
    OWNER = "owner"
    ADMIN = "admin"
    PACKER = "packer"


def dashboard_for_role(role: str | None) -> DashboardKind | None:
    """Role-specific dashboard; None for unknown roles."""
    try:
        return DashboardKind(role or "")
    except ValueError:
        return None


def resolve_navigation(
    *,
    subdomain: str | None,
    tenant: QueryState,
    is_authenticated: bool,
    user_org: QueryState,
    has_owner_role: bool,
    path: str = "/",
    development: bool = False,
) -> NavigationDecision:
    """
    Evaluate the navigation table.

    ``tenant`` holds a ``TenantOrg`` when found and ``user_org`` a ``UserOrg``.
    ``user_org`` is ignored for anonymous callers.

    An authenticated owner without an organization is sent to onboarding
    even when the subdomain has no organization yet: onboarding is how an
    unclaimed subdomain gets its organization.
    """
    if not subdomain:
        return NavigationDecision(NavigationOutcome.MARKETING)

    if isinstance(tenant, Loading):
        return NavigationDecision(NavigationOutcome.LOADING)

    if isinstance(tenant, NotFound):
        if is_authenticated and isinstance(user_org, NotFound) and has_owner_role:
            return NavigationDecision(NavigationOutcome.ONBOARDING, path=ONBOARDING_PATH)
        return NavigationDecision(NavigationOutcome.NOT_FOUND)

    if not is_authenticated:
        return NavigationDecision(
            NavigationOutcome.LOGIN,
            remote_org_id=tenant.value.remote_org_id or None,
        )

    if isinstance(user_org, Loading):
        return NavigationDecision(NavigationOutcome.LOADING)

    if isinstance(user_org, NotFound):
        if has_owner_role:
            return NavigationDecision(NavigationOutcome.ONBOARDING, path=ONBOARDING_PATH)
        return NavigationDecision(NavigationOutcome.PENDING_ROLE)

    org: UserOrg = user_org.value
    if org.slug != subdomain:
        return NavigationDecision(
            NavigationOutcome.REDIRECT,
            path=path,
            redirect_url=build_org_url(org.slug, path, development=development),
        )

    if not org.onboarding_completed:
        return NavigationDecision(NavigationOutcome.ONBOARDING, path=ONBOARDING_PATH)

    return NavigationDecision(NavigationOutcome.DASHBOARD, path=DASHBOARD_PATH)
