"""
Organization and onboarding API schemas.
"""

from datetime import datetime

from pydantic import BaseModel, Field

# --- Request Schemas ---


class CompleteOnboardingRequest(BaseModel):
    """Create the caller's store."""

    store_name: str = Field(..., min_length=1, max_length=255, examples=["Bunga Mawar Florist"])
    slug: str = Field(
        ...,
        description="Subdomain for the store (lowercase letters, digits and hyphens)",
        examples=["bunga-mawar"],
    )


class EnsureLoginReadyRequest(BaseModel):
    """Prepare a tenant's Stytch organization for login."""

    slug: str = Field(..., examples=["bunga-mawar"])
    store_name: str | None = Field(None, description="Name used if the organization must be created")


class UpdateOrganizationRequest(BaseModel):
    """Partial update of organization settings."""

    name: str | None = Field(None, max_length=255)
    courier_connected: bool | None = None
    onboarding_completed: bool | None = None


class UpdateSlugRequest(BaseModel):
    slug: str = Field(..., examples=["bunga-mawar"])


# --- Response Schemas ---


class OnboardingStatusResponse(BaseModel):
    has_organization: bool
    onboarding_completed: bool
    slug: str | None = None
    role: str | None = None


class SlugAvailabilityResponse(BaseModel):
    available: bool
    reason: str = Field(..., description="available, current, taken, reserved or invalid_format")
    message: str | None = None


class OnboardingResponse(BaseModel):
    success: bool = True
    org_id: int
    slug: str
    user_id: int
    remote_org_id: str | None = None


class LoginReadinessResponse(BaseModel):
    ensured: bool
    remote_org_id: str
    login_enabled: bool


class OrganizationPublicResponse(BaseModel):
    """What an anonymous visitor may learn about a subdomain."""

    id: int
    name: str
    slug: str
    remote_org_id: str | None = None


class OrganizationResponse(BaseModel):
    id: int
    name: str
    slug: str
    remote_org_id: str | None = None
    onboarding_completed: bool
    courier_connected: bool
    courier_configured_at: datetime | None = None
    created_at: datetime


class CurrentOrganizationResponse(BaseModel):
    organization: OrganizationResponse
    roles: list[str]
