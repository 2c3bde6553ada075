"""
Organization services - tenant lookup and settings.
"""

from dataclasses import dataclass, field
from enum import StrEnum

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.accounts.models import Role
from apps.core.auth import AuthContext
from apps.core.exceptions import AccessDeniedError, NotFoundError, SlugTakenError, ValidationError
from apps.core.logging import get_logger
from apps.core.throttling import check_rate_limit
from apps.organizations.models import Organization
from apps.tenancy.slugs import is_reserved_slug, slug_format_error, validate_slug

logger = get_logger(__name__)

SLUG_CHECK_MAX_REQUESTS = 100
SLUG_CHECK_WINDOW_SECONDS = 3600


class SlugAvailability(StrEnum):
    AVAILABLE = "available"
    CURRENT = "current"
    TAKEN = "taken"
    RESERVED = "reserved"
    INVALID_FORMAT = "invalid_format"


@dataclass(frozen=True)
class SlugCheckResult:
    available: bool
    reason: SlugAvailability
    message: str = ""


@dataclass
class CurrentOrganization:
    organization: Organization
    roles: list[str] = field(default_factory=list)

    @property
    def is_owner(self) -> bool:
        return Role.OWNER in self.roles


def slug_is_taken(slug: str) -> bool:
    return Organization.objects.filter(slug=slug).exists()


def get_by_slug(slug: str) -> Organization | None:
    """Public lookup used to validate a subdomain. Inactive tenants are hidden."""
    return Organization.objects.filter(slug=slug.lower().strip(), is_active=True).first()


def get_for_current_user(
    auth: AuthContext,
    expected_slug: str | None = None,
    *,
    development: bool = False,
) -> CurrentOrganization | None:
    """
    The caller's organization and effective roles, or None.

    When ``expected_slug`` (the request's subdomain) is given, a mismatch hides
    the organization once onboarding is complete. The reserved ``dev`` label is
    only honoured on development hosts.
    """
    if auth.identity is None or auth.user is None:
        return None

    user = auth.user
    org = user.organization
    if org is None:
        return None

    if expected_slug:
        is_dev_label = expected_slug == "dev"
        if is_dev_label and not development:
            logger.error("dev_subdomain_blocked", org_slug=org.slug, usr_email=user.email)
            return None
        if not is_dev_label and org.slug != expected_slug and org.onboarding_completed:
            logger.warning(
                "subdomain_mismatch",
                org_slug=org.slug,
                requested=expected_slug,
                usr_email=user.email,
            )
            return None

    roles = list(auth.identity.roles)
    if org.owner_id == user.id and Role.OWNER not in roles:
        roles.append(Role.OWNER)
    if user.role in (Role.ADMIN, Role.PACKER) and user.role not in roles:
        roles.append(user.role)

    return CurrentOrganization(organization=org, roles=roles)


def check_slug_availability(auth: AuthContext, slug: str) -> SlugCheckResult:
    """
    Report whether ``slug`` could be claimed by the caller.

    Allowed for owners and for users who have no organization yet. The
    caller's own organization reports ``current``.

    Raises:
        NotAuthenticatedError: If not authenticated
        AccessDeniedError: If the caller is a non-owner member of an organization
        RateLimitedError: After 100 checks per hour
    """
    identity = auth.require_identity()
    user = auth.user
    if user is not None and user.organization_id is not None and user.role != Role.OWNER:
        raise AccessDeniedError("Only owners can check subdomain availability")

    check_rate_limit(
        f"slug-check:{identity.subject}",
        max_requests=SLUG_CHECK_MAX_REQUESTS,
        window_seconds=SLUG_CHECK_WINDOW_SECONDS,
    )

    normalized = slug.lower().strip()
    error = slug_format_error(normalized)
    if error:
        return SlugCheckResult(False, SlugAvailability.INVALID_FORMAT, error)
    if is_reserved_slug(normalized):
        return SlugCheckResult(False, SlugAvailability.RESERVED, "This subdomain is reserved")

    existing = Organization.objects.filter(slug=normalized).first()
    if existing is None:
        return SlugCheckResult(True, SlugAvailability.AVAILABLE)
    if user is not None and existing.id == user.organization_id:
        return SlugCheckResult(True, SlugAvailability.CURRENT)
    return SlugCheckResult(False, SlugAvailability.TAKEN, "This subdomain is already taken")


def set_slug(auth: AuthContext, slug: str) -> Organization:
    """
    Change the caller's organization slug (owner only).

    Raises:
        ValidationError: If the slug is malformed or reserved
        SlugTakenError: If another organization uses it
    """
    _, org = auth.require_role(Role.OWNER)
    normalized = slug.lower().strip()
    validate_slug(normalized)

    if Organization.objects.filter(slug=normalized).exclude(id=org.id).exists():
        raise SlugTakenError()

    try:
        with transaction.atomic():
            org.slug = normalized
            org.save(update_fields=["slug", "updated_at"])
    except IntegrityError:
        raise SlugTakenError() from None

    logger.info("organization_slug_changed", org_id=org.id, slug=normalized)
    return org


def update_organization(
    auth: AuthContext,
    *,
    name: str | None = None,
    courier_connected: bool | None = None,
    onboarding_completed: bool | None = None,
) -> Organization:
    """Update organization settings (owner only)."""
    _, org = auth.require_role(Role.OWNER)
    update_fields = ["updated_at"]

    if name is not None:
        if not name.strip():
            raise ValidationError("Store name is required")
        org.name = name.strip()
        update_fields.append("name")
    if courier_connected is not None:
        org.courier_connected = courier_connected
        org.courier_configured_at = timezone.now()
        update_fields += ["courier_connected", "courier_configured_at"]
    if onboarding_completed is not None:
        if org.onboarding_completed and not onboarding_completed:
            raise ValidationError("Onboarding cannot be reopened once completed")
        org.onboarding_completed = onboarding_completed
        update_fields.append("onboarding_completed")

    org.save(update_fields=update_fields)
    return org


def get_organization_for_command(identifier: str) -> Organization:
    """Resolve an organization by numeric id or slug (management commands)."""
    query = Organization.objects.all()
    org = query.filter(id=int(identifier)).first() if identifier.isdigit() else None
    if org is None:
        org = query.filter(slug=identifier.lower()).first()
    if org is None:
        raise NotFoundError(f"Organization '{identifier}' not found")
    return org
