"""
Account and staff API schemas.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

# --- Request Schemas ---


class InviteStaffRequest(BaseModel):
    """Invite an admin or packer to the caller's organization."""

    email: EmailStr = Field(..., examples=["packer@bungamawar.com"])
    name: str = Field("", max_length=255, examples=["Sari"])
    role: str = Field(..., description="admin or packer", examples=["packer"])


class UpdateStaffRoleRequest(BaseModel):
    role: str = Field(..., description="admin or packer", examples=["admin"])


# --- Response Schemas ---


class UserInfo(BaseModel):
    id: int
    email: str
    name: str
    role: str
    is_active: bool
    invited: bool = Field(False, description="True once the user has a Stytch member")
    created_at: datetime


class OrganizationInfo(BaseModel):
    id: int
    name: str
    slug: str
    onboarding_completed: bool


class MeResponse(BaseModel):
    """The caller's identity, local user and organization."""

    subject: str
    email: str
    name: str
    roles: list[str]
    user: UserInfo | None = None
    organization: OrganizationInfo | None = None


class ResendInviteResponse(BaseModel):
    sent: bool
