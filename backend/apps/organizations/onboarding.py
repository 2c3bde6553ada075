"""
Tenant provisioning: onboarding, pre-login readiness, manual provisioning.

Local records (user, organization) are written first in one transaction and
are authoritative. Stytch provisioning follows outside the transaction and
is best-effort: the organization is usable even when every remote step
fails, and ``fix_remote_org_link`` can repair the link later.
"""

from dataclasses import dataclass

from django.db import IntegrityError, transaction

from apps.accounts.identity import OrganizationProvisioner
from apps.accounts.models import Role, User
from apps.core.auth import AuthContext, Identity
from apps.core.exceptions import (
    AlreadyOnboardedError,
    NotAuthenticatedError,
    RemoteProvisioningError,
    SlugTakenError,
    ValidationError,
)
from apps.core.logging import get_logger
from apps.core.throttling import check_rate_limit
from apps.organizations.models import Organization
from apps.organizations.services import slug_is_taken
from apps.tenancy.slugs import generate_unique_slug, validate_slug
from apps.tenancy.subdomains import org_hostname

logger = get_logger(__name__)

ONBOARDING_MAX_REQUESTS = 3
ONBOARDING_WINDOW_SECONDS = 3600
PRELOGIN_MAX_REQUESTS = 10
PRELOGIN_WINDOW_SECONDS = 3600


@dataclass(frozen=True)
class OnboardingResult:
    org_id: int
    slug: str
    user_id: int
    remote_org_id: str | None


@dataclass(frozen=True)
class LoginReadiness:
    ensured: bool
    remote_org_id: str
    login_enabled: bool


@dataclass(frozen=True)
class OnboardingStatus:
    has_organization: bool
    onboarding_completed: bool
    slug: str | None
    role: str | None


@dataclass(frozen=True)
class ProvisionResult:
    created: bool
    org_id: int
    slug: str
    user_id: int
    subdomain: str


@dataclass(frozen=True)
class RemoteLinkResult:
    already_linked: bool
    remote_org_id: str
    owner_added: bool
    login_enabled: bool


def get_onboarding_status(auth: AuthContext) -> OnboardingStatus:
    auth.require_identity()
    user = auth.user
    org = user.organization if user is not None else None
    return OnboardingStatus(
        has_organization=org is not None,
        onboarding_completed=bool(org and org.onboarding_completed),
        slug=org.slug if org else None,
        role=user.role if user is not None else None,
    )


def complete_onboarding(
    identity: Identity | None,
    *,
    store_name: str,
    slug: str,
    provisioner: OrganizationProvisioner | None = None,
) -> OnboardingResult:
    """
    Create the tenant for a first-time owner.

    Raises:
        NotAuthenticatedError: If ``identity`` is None
        RateLimitedError: After 3 attempts per hour for the same subject
        ValidationError: If the slug is malformed or reserved, or the name is empty
        SlugTakenError: If the slug is in use (including a concurrent claim)
        AlreadyOnboardedError: If the user already has an organization
    """
    if identity is None:
        raise NotAuthenticatedError()

    check_rate_limit(
        f"onboarding:{identity.subject}",
        max_requests=ONBOARDING_MAX_REQUESTS,
        window_seconds=ONBOARDING_WINDOW_SECONDS,
    )

    slug = slug.lower().strip()
    validate_slug(slug)
    store_name = store_name.strip()
    if not store_name:
        raise ValidationError("Store name is required")

    try:
        with transaction.atomic():
            user = User.objects.select_for_update().filter(email=identity.email).first()
            if user is not None and user.organization_id is not None:
                raise AlreadyOnboardedError()

            if slug_is_taken(slug):
                raise SlugTakenError()

            if user is None:
                user = User.objects.create_user(
                    email=identity.email,
                    name=identity.name,
                    role=Role.OWNER,
                    stytch_member_id=identity.member_id,
                )
            else:
                user.role = Role.OWNER
                user.is_active = True

            org = Organization.objects.create(
                name=store_name,
                slug=slug,
                owner=user,
                onboarding_completed=True,
                courier_connected=False,
                is_active=True,
            )
            user.organization = org
            user.save(update_fields=["organization", "role", "is_active", "updated_at"])
    except IntegrityError:
        # Concurrent onboarding claimed the slug first
        raise SlugTakenError() from None

    logger.info("onboarding_local_records_created", org_id=org.id, slug=slug, usr_id=user.id)

    remote_org_id = _provision_remote(
        provisioner or OrganizationProvisioner(),
        org=org,
        user=user,
        session_org_id=identity.remote_org_id,
    )

    return OnboardingResult(
        org_id=org.id,
        slug=org.slug,
        user_id=user.id,
        remote_org_id=remote_org_id,
    )


def _provision_remote(
    provisioner: OrganizationProvisioner,
    *,
    org: Organization,
    user: User,
    session_org_id: str = "",
) -> str | None:
    """Best-effort Stytch side of onboarding. Each remote step logs its own failures."""
    remote_org_id = provisioner.ensure_organization(
        slug=org.slug,
        name=org.name,
        session_org_id=session_org_id,
        created_via="onboarding",
    )
    if not remote_org_id:
        logger.warning("onboarding_remote_org_missing", org_id=org.id, slug=org.slug)
        return None

    member_id = provisioner.add_owner(remote_org_id, user.email, user.name)

    org.stytch_org_id = remote_org_id
    org.save(update_fields=["stytch_org_id", "updated_at"])
    if member_id and member_id != user.stytch_member_id:
        user.stytch_member_id = member_id
        user.save(update_fields=["stytch_member_id", "updated_at"])

    provisioner.enable_password_login(remote_org_id)

    if member_id:
        provisioner.update_member_metadata(
            remote_org_id,
            member_id,
            {"org_id": org.id, "org_slug": org.slug, "role": Role.OWNER},
        )
    return remote_org_id


def ensure_org_login_ready(
    slug: str,
    store_name: str | None = None,
    *,
    provisioner: OrganizationProvisioner | None = None,
) -> LoginReadiness:
    """
    Make sure a Stytch organization with password login exists for ``slug``.

    Unauthenticated and idempotent: an existing organization is found by slug
    before any create, and login settings are read before being changed.

    Raises:
        ValidationError: If the slug is malformed or reserved
        RateLimitedError: After 10 calls per hour for the same slug
        RemoteProvisioningError: If no remote organization could be ensured
    """
    slug = slug.lower().strip()
    validate_slug(slug)

    check_rate_limit(
        f"prelogin:{slug}",
        max_requests=PRELOGIN_MAX_REQUESTS,
        window_seconds=PRELOGIN_WINDOW_SECONDS,
    )

    provisioner = provisioner or OrganizationProvisioner()
    local_org = Organization.objects.filter(slug=slug).first()

    if local_org is not None and local_org.stytch_org_id:
        remote_org_id: str | None = local_org.stytch_org_id
    else:
        remote_org_id = provisioner.ensure_organization(
            slug=slug,
            name=store_name or (local_org.name if local_org else slug),
            created_via="prelogin",
        )
    if not remote_org_id:
        raise RemoteProvisioningError(f"Failed to ensure remote organization for '{slug}'")

    if local_org is not None and not local_org.stytch_org_id:
        local_org.stytch_org_id = remote_org_id
        local_org.save(update_fields=["stytch_org_id", "updated_at"])

    login_enabled = provisioner.enable_password_login(remote_org_id)
    return LoginReadiness(ensured=True, remote_org_id=remote_org_id, login_enabled=login_enabled)


def provision_tenant(*, email: str, name: str, org_name: str | None = None) -> ProvisionResult:
    """
    Manually provision a local tenant for ``email``.

    Returns the existing organization when the user already owns one.
    Otherwise creates the owner user, a unique slug derived from the
    organization name, and the organization (onboarding not yet completed).
    """
    email = email.strip().lower()
    if not email:
        raise ValidationError("Email is required")

    existing_user = User.objects.filter(email=email).select_related("organization").first()
    if existing_user is not None and existing_user.organization is not None:
        org = existing_user.organization
        return ProvisionResult(
            created=False,
            org_id=org.id,
            slug=org.slug,
            user_id=existing_user.id,
            subdomain=org_hostname(org.slug, development=True),
        )

    display_name = name.strip() or email.split("@")[0]
    org_name = (org_name or "").strip() or f"{display_name}'s Business"

    with transaction.atomic():
        user = existing_user or User.objects.create_user(
            email=email,
            name=display_name,
            role=Role.OWNER,
        )
        slug = generate_unique_slug(org_name, slug_is_taken)
        org = Organization.objects.create(
            name=org_name,
            slug=slug,
            owner=user,
            onboarding_completed=False,
        )
        user.organization = org
        user.role = Role.OWNER
        user.save(update_fields=["organization", "role", "updated_at"])

    logger.info("tenant_provisioned", org_id=org.id, slug=slug, usr_id=user.id)
    return ProvisionResult(
        created=True,
        org_id=org.id,
        slug=org.slug,
        user_id=user.id,
        subdomain=org_hostname(org.slug, development=True),
    )


def fix_remote_org_link(
    org: Organization,
    *,
    provisioner: OrganizationProvisioner | None = None,
) -> RemoteLinkResult:
    """
    Repair a tenant whose Stytch organization link is missing.

    Raises:
        RemoteProvisioningError: If no remote organization could be found or created
    """
    if org.stytch_org_id:
        return RemoteLinkResult(
            already_linked=True,
            remote_org_id=org.stytch_org_id,
            owner_added=False,
            login_enabled=False,
        )

    provisioner = provisioner or OrganizationProvisioner()
    remote_org_id = provisioner.ensure_organization(slug=org.slug, name=org.name, created_via="repair")
    if not remote_org_id:
        raise RemoteProvisioningError(f"Failed to ensure remote organization for '{org.slug}'")

    owner_added = False
    if org.owner is not None:
        member_id = provisioner.add_owner(remote_org_id, org.owner.email, org.owner.name)
        if member_id:
            owner_added = True
            org.owner.stytch_member_id = member_id
            org.owner.save(update_fields=["stytch_member_id", "updated_at"])

    login_enabled = provisioner.enable_password_login(remote_org_id)

    org.stytch_org_id = remote_org_id
    org.save(update_fields=["stytch_org_id", "updated_at"])
    logger.info("remote_org_linked", org_id=org.id, remote_org_id=remote_org_id)

    return RemoteLinkResult(
        already_linked=False,
        remote_org_id=remote_org_id,
        owner_added=owner_added,
        login_enabled=login_enabled,
    )
