"""
Remote identity provisioning against Stytch B2B.

Each remote operation is an ordered list of strategies tried until one
succeeds. A strategy returns a truthy result on success and None (or raises)
on failure. Failures are logged and the next strategy runs; when all fail
the operation returns None and the caller decides whether that is fatal.
"""

from collections.abc import Callable, Sequence
from typing import Any, TypeVar

import httpx
from django.conf import settings
from stytch.core.response_base import StytchError

from apps.accounts.constants import LOGIN_AUTH_METHODS, StytchRoles
from apps.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Strategy = tuple[str, Callable[[], T | None]]

REST_TIMEOUT_SECONDS = 10.0

LOCAL_TO_STYTCH_ROLE = {
    "owner": StytchRoles.OWNER,
    "admin": StytchRoles.ADMIN_STAFF,
    "packer": StytchRoles.PACKER,
}


def first_successful(operation: str, strategies: Sequence[Strategy], **log_context: Any) -> Any:
    """Run ``strategies`` in order and return the first truthy result, or None."""
    for name, strategy in strategies:
        try:
            result = strategy()
        except StytchError as e:
            logger.warning(
                "identity_strategy_failed",
                operation=operation,
                strategy=name,
                error=e.details.error_message,
                **log_context,
            )
            continue
        except Exception:
            logger.warning(
                "identity_strategy_failed",
                operation=operation,
                strategy=name,
                exc_info=True,
                **log_context,
            )
            continue
        if result:
            logger.info("identity_strategy_succeeded", operation=operation, strategy=name, **log_context)
            return result
    logger.warning("identity_operation_exhausted", operation=operation, **log_context)
    return None


def _slug_query(slug: str) -> dict[str, Any]:
    return {
        "operator": "AND",
        "operands": [{"filter_name": "organization_slugs", "filter_value": [slug]}],
    }


def _email_query(email: str) -> dict[str, Any]:
    return {
        "operator": "AND",
        "operands": [{"filter_name": "member_emails", "filter_value": [email]}],
    }


class OrganizationProvisioner:
    """
    Creates and configures the Stytch side of a tenant.

    Args:
        client: A ``stytch.B2BClient``. Defaults to the shared singleton.
        http_client_factory: Builds the httpx client for raw REST fallbacks.
    """

    def __init__(
        self,
        client: Any = None,
        http_client_factory: Callable[[], httpx.Client] | None = None,
    ) -> None:
        self._client = client
        self._http_client_factory = http_client_factory or (
            lambda: httpx.Client(timeout=REST_TIMEOUT_SECONDS)
        )

    @property
    def client(self) -> Any:
        if self._client is None:
            from apps.accounts.stytch_client import get_stytch_client

            self._client = get_stytch_client()
        return self._client

    # --- Organizations ---

    def find_organization_by_slug(self, slug: str) -> str | None:
        response = self.client.organizations.search(query=_slug_query(slug))
        for organization in response.organizations:
            if organization.organization_slug == slug:
                return organization.organization_id
        return None

    def ensure_organization(
        self,
        *,
        slug: str,
        name: str,
        session_org_id: str = "",
        created_via: str = "onboarding",
    ) -> str | None:
        """
        Return the Stytch organization id for ``slug``, creating it if needed.

        Order: the organization the caller's session was issued for (when no
        other tenant already uses it), an existing organization with the
        slug, a new organization, and finally a re-search in case a
        concurrent create won.
        """
        return first_successful(
            "ensure_organization",
            [
                ("session_organization", lambda: self._adopt_session_organization(session_org_id, slug, name)),
                ("search_by_slug", lambda: self.find_organization_by_slug(slug)),
                ("create", lambda: self._create_organization(slug, name, created_via)),
                ("search_after_create", lambda: self.find_organization_by_slug(slug)),
            ],
            slug=slug,
        )

    def _adopt_session_organization(self, session_org_id: str, slug: str, name: str) -> str | None:
        from apps.organizations.models import Organization

        if not session_org_id:
            return None
        if Organization.objects.filter(stytch_org_id=session_org_id).exclude(slug=slug).exists():
            return None
        try:
            self.client.organizations.update(
                organization_id=session_org_id,
                organization_name=name,
                organization_slug=slug,
            )
        except StytchError as e:
            # Keep the link; only the display fields are stale
            logger.warning(
                "session_organization_rename_failed",
                organization_id=session_org_id,
                error=e.details.error_message,
            )
        return session_org_id

    def _create_organization(self, slug: str, name: str, created_via: str) -> str | None:
        response = self.client.organizations.create(
            organization_name=name,
            organization_slug=slug,
            trusted_metadata={"slug": slug, "created_via": created_via},
        )
        return response.organization.organization_id

    # --- Login connection ---

    def enable_password_login(self, organization_id: str) -> bool:
        """Allow password and magic-link login for the organization."""
        result = first_successful(
            "enable_password_login",
            [
                ("already_enabled", lambda: self._password_login_enabled(organization_id)),
                ("restrict_auth_methods", lambda: self._restrict_auth_methods(organization_id)),
                ("allow_all_auth_methods", lambda: self._allow_all_auth_methods(organization_id)),
                ("rest_update", lambda: self._rest_update_auth_methods(organization_id)),
            ],
            organization_id=organization_id,
        )
        return bool(result)

    def _password_login_enabled(self, organization_id: str) -> bool:
        organization = self.client.organizations.get(organization_id=organization_id).organization
        if organization.auth_methods == "ALL_ALLOWED":
            return True
        allowed = set(organization.allowed_auth_methods or [])
        return organization.auth_methods == "RESTRICTED" and set(LOGIN_AUTH_METHODS) <= allowed

    def _restrict_auth_methods(self, organization_id: str) -> bool:
        self.client.organizations.update(
            organization_id=organization_id,
            auth_methods="RESTRICTED",
            allowed_auth_methods=LOGIN_AUTH_METHODS,
        )
        return True

    def _allow_all_auth_methods(self, organization_id: str) -> bool:
        self.client.organizations.update(
            organization_id=organization_id,
            auth_methods="ALL_ALLOWED",
        )
        return True

    def _rest_update_auth_methods(self, organization_id: str) -> bool:
        url = f"{settings.STYTCH_API_BASE_URL.rstrip('/')}/v1/b2b/organizations/{organization_id}"
        with self._http_client_factory() as http:
            response = http.put(
                url,
                json={"auth_methods": "RESTRICTED", "allowed_auth_methods": LOGIN_AUTH_METHODS},
                auth=(settings.STYTCH_PROJECT_ID, settings.STYTCH_SECRET),
            )
            response.raise_for_status()
        return True

    # --- Members ---

    def find_member_id(self, organization_id: str, email: str) -> str | None:
        response = self.client.organizations.members.search(
            organization_ids=[organization_id],
            query=_email_query(email),
        )
        for member in response.members:
            if member.email_address.lower() == email.lower():
                return member.member_id
        return None

    def add_owner(self, organization_id: str, email: str, name: str = "") -> str | None:
        """Make ``email`` a member with the owner role. Returns the member id."""
        role_id = LOCAL_TO_STYTCH_ROLE["owner"]
        return first_successful(
            "add_owner",
            [
                ("create_member_with_role", lambda: self._create_member(organization_id, email, name, role_id)),
                ("assign_role_to_existing_member", lambda: self._assign_role_by_email(organization_id, email, role_id)),
            ],
            organization_id=organization_id,
        )

    def _create_member(self, organization_id: str, email: str, name: str, role_id: str) -> str | None:
        response = self.client.organizations.members.create(
            organization_id=organization_id,
            email_address=email,
            name=name or None,
            roles=[role_id],
        )
        return response.member.member_id

    def _assign_role_by_email(self, organization_id: str, email: str, role_id: str) -> str | None:
        member_id = self.find_member_id(organization_id, email)
        if member_id is None:
            return None
        self.client.organizations.members.update(
            organization_id=organization_id,
            member_id=member_id,
            roles=[role_id],
        )
        return member_id

    def update_member_metadata(self, organization_id: str, member_id: str, metadata: dict[str, Any]) -> bool:
        result = first_successful(
            "update_member_metadata",
            [
                (
                    "members_update",
                    lambda: bool(
                        self.client.organizations.members.update(
                            organization_id=organization_id,
                            member_id=member_id,
                            trusted_metadata=metadata,
                        )
                    ),
                ),
            ],
            organization_id=organization_id,
        )
        return bool(result)

    def invite_member(self, organization_id: str, email: str, name: str, role: str) -> str | None:
        """Send a Stytch invite email; the member is created with ``role``."""
        role_id = LOCAL_TO_STYTCH_ROLE[role]
        return first_successful(
            "invite_member",
            [
                ("magic_link_invite", lambda: self._invite(organization_id, email, name, role_id)),
                ("assign_role_to_existing_member", lambda: self._assign_role_by_email(organization_id, email, role_id)),
            ],
            organization_id=organization_id,
        )

    def _invite(self, organization_id: str, email: str, name: str, role_id: str) -> str | None:
        response = self.client.magic_links.email.invite(
            organization_id=organization_id,
            email_address=email,
            name=name or None,
            roles=[role_id],
        )
        return response.member.member_id

    def update_member_role(self, organization_id: str, member_id: str, role: str) -> bool:
        role_id = LOCAL_TO_STYTCH_ROLE[role]
        result = first_successful(
            "update_member_role",
            [
                (
                    "members_update",
                    lambda: bool(
                        self.client.organizations.members.update(
                            organization_id=organization_id,
                            member_id=member_id,
                            roles=[role_id],
                        )
                    ),
                ),
            ],
            organization_id=organization_id,
        )
        return bool(result)

    def remove_member(self, organization_id: str, member_id: str) -> bool:
        result = first_successful(
            "remove_member",
            [
                (
                    "members_delete",
                    lambda: bool(
                        self.client.organizations.members.delete(
                            organization_id=organization_id,
                            member_id=member_id,
                        )
                    ),
                ),
            ],
            organization_id=organization_id,
        )
        return bool(result)
