"""
Authentication context for request lifecycle.

Provides a typed container for authentication state that middleware
populates and endpoints consume.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.http import HttpRequest

from apps.core.exceptions import AccessDeniedError, NotAuthenticatedError

if TYPE_CHECKING:
    from apps.accounts.models import User
    from apps.organizations.models import Organization


@dataclass(frozen=True)
class Identity:
    """
    Authenticated identity as reported by Stytch.

    ``subject`` is the member's email, the cross-organization identifier in
    Stytch B2B. ``remote_org_id`` is the organization the session was issued
    for, which may not be linked to any local tenant yet.
    """

    subject: str
    email: str
    name: str = ""
    member_id: str = ""
    remote_org_id: str = ""
    roles: tuple[str, ...] = field(default_factory=tuple)

    def has_role(self, role: str) -> bool:
        return role in self.roles


@dataclass
class AuthContext:
    """
    Authentication context attached to requests by StytchAuthMiddleware.

    Attributes:
        identity: The authenticated Stytch identity, or None
        user: The local User record, or None (e.g. mid-onboarding)
        failed: True if auth was attempted but failed (vs just not present)
    """

    identity: Identity | None = None
    user: "User | None" = None
    failed: bool = False

    @property
    def is_authenticated(self) -> bool:
        """Check if a valid identity is present."""
        return self.identity is not None

    @property
    def organization(self) -> "Organization | None":
        if self.user is None:
            return None
        return self.user.organization

    @property
    def roles(self) -> set[str]:
        """Effective roles: the local role plus any role carried by the session."""
        roles: set[str] = set()
        if self.identity is not None:
            roles.update(self.identity.roles)
        if self.user is not None and self.user.role:
            roles.add(self.user.role)
        return roles

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def require_identity(self) -> Identity:
        """
        Get the authenticated identity or raise.

        Raises:
            NotAuthenticatedError: If no identity is present
        """
        if self.identity is None:
            raise NotAuthenticatedError()
        return self.identity

    def require_member(self) -> tuple["User", "Organization"]:
        """
        Get the local user and their organization.

        Raises:
            NotAuthenticatedError: If not authenticated
            AccessDeniedError: If the user has no local record or organization
        """
        self.require_identity()
        if self.user is None or not self.user.is_active:
            raise AccessDeniedError("User not found")
        organization = self.user.organization
        if organization is None:
            raise AccessDeniedError("User has no organization")
        return self.user, organization

    def require_role(self, *roles: str) -> tuple["User", "Organization"]:
        """
        Get user and organization, verifying the local role is one of ``roles``.

        Raises:
            NotAuthenticatedError: If not authenticated
            AccessDeniedError: If the role does not match
        """
        user, organization = self.require_member()
        if user.role not in roles:
            raise AccessDeniedError(f"Access denied: requires role {' or '.join(roles)}")
        return user, organization


def get_auth_context(request: HttpRequest) -> AuthContext:
    """Return the request's auth context, or an empty one if middleware did not run."""
    context = getattr(request, "auth_context", None)
    if context is None:
        return AuthContext()
    return context
