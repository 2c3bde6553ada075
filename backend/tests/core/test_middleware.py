"""
Tests for TenantContextMiddleware and StytchAuthMiddleware.
"""

from dataclasses import dataclass, field
from unittest.mock import MagicMock, patch

import pytest
from django.http import HttpRequest, HttpResponse
from stytch.core.response_base import StytchError, StytchErrorDetails

from apps.core.middleware import StytchAuthMiddleware, TenantContextMiddleware
from tests.accounts.factories import OrganizationFactory, make_member


@dataclass
class MockMemberSession:
    member_id: str
    organization_id: str = "organization-test-1"
    roles: list[str] = field(default_factory=list)


@dataclass
class MockJWTAuthResponse:
    member_session: MockMemberSession


@dataclass
class MockStytchMember:
    member_id: str
    email_address: str
    name: str | None
    roles: list[str]


@dataclass
class MockStytchOrg:
    organization_id: str


@dataclass
class MockFullAuthResponse:
    member: MockStytchMember
    organization: MockStytchOrg


def stytch_error(message: str) -> StytchError:
    return StytchError(
        StytchErrorDetails(
            status_code=401,
            request_id="test-request-id",
            error_type="invalid_jwt",
            error_message=message,
        )
    )


def make_request(path: str = "/api/v1/test", auth_header: str | None = None, host: str = "testserver") -> HttpRequest:
    request = HttpRequest()
    request.path = path
    request.method = "GET"
    request.META = {"HTTP_HOST": host}
    if auth_header:
        request.META["HTTP_AUTHORIZATION"] = auth_header
    return request


@pytest.fixture
def middleware() -> StytchAuthMiddleware:
    return StytchAuthMiddleware(MagicMock(return_value=HttpResponse()))


class TestTenantContextMiddleware:
    @pytest.mark.parametrize(
        ("host", "slug", "development"),
        [
            ("bunga-mawar.whatthepack.today", "bunga-mawar", False),
            ("bunga-mawar.dev.whatthepack.today", "bunga-mawar", True),
            ("bunga-mawar.localhost:3000", "bunga-mawar", True),
            ("whatthepack.today", None, False),
            ("localhost:8000", None, True),
        ],
    )
    def test_sets_tenant_attributes(self, host: str, slug: str | None, development: bool) -> None:
        seen: dict = {}

        def get_response(request: HttpRequest) -> HttpResponse:
            seen["slug"] = request.tenant_slug
            seen["development"] = request.is_development_host
            return HttpResponse()

        TenantContextMiddleware(get_response)(make_request(host=host))

        assert seen == {"slug": slug, "development": development}


@pytest.mark.django_db
class TestPublicPaths:
    def test_public_path_skips_auth(self, middleware: StytchAuthMiddleware) -> None:
        request = make_request("/api/v1/health", "Bearer test-jwt")

        with patch.object(middleware, "_authenticate_jwt") as mock_auth:
            middleware(request)
            mock_auth.assert_not_called()

    def test_non_public_path_attempts_auth(self, middleware: StytchAuthMiddleware) -> None:
        request = make_request("/api/v1/products", "Bearer test-jwt")

        with patch.object(middleware, "_authenticate_jwt") as mock_auth:
            middleware(request)
            mock_auth.assert_called_once_with(request, "test-jwt")

    def test_no_auth_header_is_anonymous(self, middleware: StytchAuthMiddleware) -> None:
        request = make_request()
        middleware(request)

        assert request.auth_context.is_authenticated is False
        assert request.auth_context.failed is False


@pytest.mark.django_db
class TestJWTAuthentication:
    @patch("apps.accounts.stytch_client.get_stytch_client")
    def test_existing_member_loads_local_user(
        self,
        mock_get_client: MagicMock,
        middleware: StytchAuthMiddleware,
    ) -> None:
        org = OrganizationFactory.create(stytch_org_id="organization-test-1")
        packer = make_member(org, role="packer", stytch_member_id="member-123")

        mock_client = MagicMock()
        mock_client.sessions.authenticate_jwt.return_value = MockJWTAuthResponse(
            member_session=MockMemberSession(member_id="member-123", roles=["packer"])
        )
        mock_get_client.return_value = mock_client

        request = make_request("/api/v1/test", "Bearer valid-jwt")
        middleware(request)

        auth = request.auth_context
        assert auth.user == packer
        assert auth.organization == org
        assert auth.identity.roles == ("packer",)
        mock_client.sessions.authenticate.assert_not_called()

    @patch("apps.accounts.stytch_client.get_stytch_client")
    def test_invalid_jwt_marks_failed(self, mock_get_client: MagicMock, middleware: StytchAuthMiddleware) -> None:
        mock_client = MagicMock()
        mock_client.sessions.authenticate_jwt.side_effect = stytch_error("JWT is invalid")
        mock_get_client.return_value = mock_client

        request = make_request("/api/v1/test", "Bearer invalid-jwt")
        middleware(request)

        assert request.auth_context.is_authenticated is False
        assert request.auth_context.failed is True

    @patch("apps.accounts.stytch_client.get_stytch_client")
    def test_unknown_member_builds_identity_without_user(
        self,
        mock_get_client: MagicMock,
        middleware: StytchAuthMiddleware,
    ) -> None:
        """A freshly signed-up owner is authenticated before any local record exists."""
        mock_client = MagicMock()
        mock_client.sessions.authenticate_jwt.return_value = MockJWTAuthResponse(
            member_session=MockMemberSession(member_id="member-new-456")
        )
        mock_client.sessions.authenticate.return_value = MockFullAuthResponse(
            member=MockStytchMember(
                member_id="member-new-456",
                email_address="Ayu@BungaMawar.com",
                name="Ayu",
                roles=["stytch_admin"],
            ),
            organization=MockStytchOrg(organization_id="organization-new-789"),
        )
        mock_get_client.return_value = mock_client

        request = make_request("/api/v1/test", "Bearer valid-jwt")
        middleware(request)

        auth = request.auth_context
        assert auth.user is None
        assert auth.identity.email == "ayu@bungamawar.com"
        assert auth.identity.remote_org_id == "organization-new-789"
        assert auth.has_role("owner")

    @patch("apps.accounts.stytch_client.get_stytch_client")
    def test_full_session_failure_marks_failed(
        self,
        mock_get_client: MagicMock,
        middleware: StytchAuthMiddleware,
    ) -> None:
        mock_client = MagicMock()
        mock_client.sessions.authenticate_jwt.return_value = MockJWTAuthResponse(
            member_session=MockMemberSession(member_id="member-fail-123")
        )
        mock_client.sessions.authenticate.side_effect = stytch_error("Session has expired")
        mock_get_client.return_value = mock_client

        request = make_request("/api/v1/test", "Bearer jwt")
        middleware(request)

        assert request.auth_context.failed is True
