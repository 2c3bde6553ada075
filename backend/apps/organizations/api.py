"""
Organization and onboarding API endpoints.
"""

from ninja import Router

from apps.core.auth import get_auth_context
from apps.core.exceptions import NotFoundError
from apps.core.schemas import ErrorResponse
from apps.core.security import BearerAuth
from apps.core.types import AuthenticatedHttpRequest
from apps.organizations import onboarding, services
from apps.organizations.models import Organization
from apps.organizations.schemas import (
    CompleteOnboardingRequest,
    CurrentOrganizationResponse,
    EnsureLoginReadyRequest,
    LoginReadinessResponse,
    OnboardingResponse,
    OnboardingStatusResponse,
    OrganizationPublicResponse,
    OrganizationResponse,
    SlugAvailabilityResponse,
    UpdateOrganizationRequest,
    UpdateSlugRequest,
)

onboarding_router = Router(tags=["onboarding"])
router = Router(tags=["organizations"])
bearer_auth = BearerAuth()


def _organization_response(org: Organization) -> OrganizationResponse:
    return OrganizationResponse(
        id=org.id,
        name=org.name,
        slug=org.slug,
        remote_org_id=org.stytch_org_id or None,
        onboarding_completed=org.onboarding_completed,
        courier_connected=org.courier_connected,
        courier_configured_at=org.courier_configured_at,
        created_at=org.created_at,
    )


# =============================================================================
# Onboarding
# =============================================================================


@onboarding_router.get(
    "/status",
    response={200: OnboardingStatusResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="getOnboardingStatus",
    summary="Get onboarding status",
)
def onboarding_status(request: AuthenticatedHttpRequest) -> OnboardingStatusResponse:
    status = onboarding.get_onboarding_status(get_auth_context(request))
    return OnboardingStatusResponse(
        has_organization=status.has_organization,
        onboarding_completed=status.onboarding_completed,
        slug=status.slug,
        role=status.role,
    )


@onboarding_router.get(
    "/slug-availability",
    response={200: SlugAvailabilityResponse, 401: ErrorResponse, 403: ErrorResponse, 429: ErrorResponse},
    auth=bearer_auth,
    operation_id="checkSlugAvailability",
    summary="Check whether a subdomain can be claimed",
)
def slug_availability(request: AuthenticatedHttpRequest, slug: str) -> SlugAvailabilityResponse:
    result = services.check_slug_availability(get_auth_context(request), slug)
    return SlugAvailabilityResponse(
        available=result.available,
        reason=str(result.reason),
        message=result.message,
    )


@onboarding_router.post(
    "/complete",
    response={
        200: OnboardingResponse,
        400: ErrorResponse,
        401: ErrorResponse,
        409: ErrorResponse,
        429: ErrorResponse,
    },
    auth=bearer_auth,
    operation_id="completeOnboarding",
    summary="Create the caller's store",
)
def complete_onboarding(
    request: AuthenticatedHttpRequest,
    payload: CompleteOnboardingRequest,
) -> OnboardingResponse:
    """
    Create the organization and owner records, then provision Stytch.

    Stytch failures do not fail the request; ``remote_org_id`` is null
    when the remote organization could not be ensured.
    """
    result = onboarding.complete_onboarding(
        get_auth_context(request).identity,
        store_name=payload.store_name,
        slug=payload.slug,
    )
    return OnboardingResponse(
        org_id=result.org_id,
        slug=result.slug,
        user_id=result.user_id,
        remote_org_id=result.remote_org_id,
    )


@onboarding_router.post(
    "/ensure-login-ready",
    response={200: LoginReadinessResponse, 400: ErrorResponse, 429: ErrorResponse, 502: ErrorResponse},
    operation_id="ensureLoginReady",
    summary="Prepare a tenant for password login",
)
def ensure_login_ready(request: AuthenticatedHttpRequest, payload: EnsureLoginReadyRequest) -> LoginReadinessResponse:
    """Unauthenticated. Called by the login page before redirecting to Stytch."""
    result = onboarding.ensure_org_login_ready(payload.slug, payload.store_name)
    return LoginReadinessResponse(
        ensured=result.ensured,
        remote_org_id=result.remote_org_id,
        login_enabled=result.login_enabled,
    )


# =============================================================================
# Organizations
# =============================================================================


@router.get(
    "/by-slug/{slug}",
    response={200: OrganizationPublicResponse, 404: ErrorResponse},
    operation_id="getOrganizationBySlug",
    summary="Look up a tenant by subdomain",
)
def get_by_slug(request: AuthenticatedHttpRequest, slug: str) -> OrganizationPublicResponse:
    org = services.get_by_slug(slug)
    if org is None:
        raise NotFoundError("Organization not found")
    return OrganizationPublicResponse(
        id=org.id,
        name=org.name,
        slug=org.slug,
        remote_org_id=org.stytch_org_id or None,
    )


@router.get(
    "/current",
    response={200: CurrentOrganizationResponse, 401: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="getCurrentOrganization",
    summary="Get the caller's organization",
)
def get_current(request: AuthenticatedHttpRequest) -> CurrentOrganizationResponse:
    """The caller's organization for the request's subdomain, with effective roles."""
    current = services.get_for_current_user(
        get_auth_context(request),
        getattr(request, "tenant_slug", None),
        development=getattr(request, "is_development_host", False),
    )
    if current is None:
        raise NotFoundError("Organization not found")
    return CurrentOrganizationResponse(
        organization=_organization_response(current.organization),
        roles=sorted(current.roles),
    )


@router.patch(
    "/current",
    response={200: OrganizationResponse, 400: ErrorResponse, 401: ErrorResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="updateCurrentOrganization",
    summary="Update organization settings",
)
def update_current(request: AuthenticatedHttpRequest, payload: UpdateOrganizationRequest) -> OrganizationResponse:
    org = services.update_organization(
        get_auth_context(request),
        name=payload.name,
        courier_connected=payload.courier_connected,
        onboarding_completed=payload.onboarding_completed,
    )
    return _organization_response(org)


@router.put(
    "/current/slug",
    response={
        200: OrganizationResponse,
        400: ErrorResponse,
        401: ErrorResponse,
        403: ErrorResponse,
        409: ErrorResponse,
    },
    auth=bearer_auth,
    operation_id="updateOrganizationSlug",
    summary="Change the organization subdomain",
)
def update_slug(request: AuthenticatedHttpRequest, payload: UpdateSlugRequest) -> OrganizationResponse:
    org = services.set_slug(get_auth_context(request), payload.slug)
    return _organization_response(org)
