"""
Tenancy API schemas.
"""

from pydantic import BaseModel, Field


class NavigationResponse(BaseModel):
    """Where the client should go for the current host and session."""

    outcome: str = Field(
        ...,
        description="One of marketing, loading, not_found, login, redirect, onboarding, dashboard, pending_role",
        examples=["dashboard"],
    )
    subdomain: str | None = Field(None, description="Tenant slug resolved from the Host header")
    path: str | None = Field(None, description="Path to navigate to on the current host")
    redirect_url: str | None = Field(None, description="Absolute URL on another tenant subdomain")
    remote_org_id: str | None = Field(None, description="Stytch organization ID to log in to")
    trigger_login: bool = Field(
        False,
        description="True when the client should start the login redirect now",
    )
    dashboard: str | None = Field(None, description="Role dashboard: owner, admin or packer")
