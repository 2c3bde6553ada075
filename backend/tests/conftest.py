"""
Shared pytest fixtures for all tests.

Factories
---------
Import factories directly from their modules:

    from tests.accounts.factories import OrganizationFactory, UserFactory, make_member
    from tests.inventory.factories import ProductFactory
    from tests.orders.factories import OrderFactory, OrderItemFactory

Example usage:

    @pytest.mark.django_db
    def test_something():
        org = OrganizationFactory.create(slug="bunga-mawar")
        owner = make_member(org, role="owner")
        auth = auth_for(owner)
"""

from typing import Any, cast

import pytest
from django.core.cache import cache
from django.test import Client, RequestFactory

from apps.core.auth import AuthContext, Identity
from apps.core.types import AuthenticatedHttpRequest


@pytest.fixture(autouse=True)
def clear_cache():
    """Rate limit counters and login guard markers live in the cache."""
    cache.clear()
    yield
    cache.clear()


def identity_for(user: Any, roles: tuple[str, ...] | None = None, remote_org_id: str = "") -> Identity:
    """Build the Identity the middleware would attach for ``user``."""
    return Identity(
        subject=user.email,
        email=user.email,
        name=user.name,
        member_id=user.stytch_member_id,
        remote_org_id=remote_org_id,
        roles=roles if roles is not None else (user.role,),
    )


def auth_for(user: Any, roles: tuple[str, ...] | None = None) -> AuthContext:
    """AuthContext for an existing local user."""
    return AuthContext(identity=identity_for(user, roles), user=user)


def make_request_with_auth(request: Any, auth: AuthContext, tenant_slug: str | None = None) -> AuthenticatedHttpRequest:
    """
    Set the middleware attributes on a request and return it typed as AuthenticatedHttpRequest.

    Example:
        request = request_factory.get("/api/v1/products")
        request = make_request_with_auth(request, auth_for(owner))
    """
    request.auth_context = auth
    request.tenant_slug = tenant_slug
    request.is_development_host = False
    return cast(AuthenticatedHttpRequest, request)


@pytest.fixture
def request_factory() -> RequestFactory:
    """
    Django request factory for calling endpoint functions directly.

    Example:
        def test_endpoint(request_factory):
            request = make_request_with_auth(request_factory.get("/"), auth_for(owner))
            result = list_products(request)
    """
    return RequestFactory()


@pytest.fixture
def api_client() -> Client:
    """
    Django test client for full HTTP request/response cycle tests.

    Example:
        def test_api_returns_200(api_client):
            response = api_client.get("/api/v1/health")
            assert response.status_code == 200
    """
    return Client()


@pytest.fixture
def mock_provisioner():
    """An OrganizationProvisioner double whose remote calls all succeed."""
    from unittest.mock import MagicMock

    from apps.accounts.identity import OrganizationProvisioner

    provisioner = MagicMock(spec=OrganizationProvisioner)
    provisioner.ensure_organization.return_value = "organization-test-1"
    provisioner.add_owner.return_value = "member-test-owner"
    provisioner.enable_password_login.return_value = True
    provisioner.update_member_metadata.return_value = True
    provisioner.invite_member.return_value = "member-test-invited"
    provisioner.update_member_role.return_value = True
    provisioner.remove_member.return_value = True
    return provisioner
