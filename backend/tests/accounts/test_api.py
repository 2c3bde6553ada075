"""
Tests for account and staff API endpoints.
"""

from unittest.mock import MagicMock, patch

import pytest
from django.test import RequestFactory

from apps.accounts.api import get_current_user, invite_staff, list_staff, remove_staff
from apps.accounts.schemas import InviteStaffRequest
from apps.core.auth import AuthContext, Identity
from apps.core.exceptions import AccessDeniedError
from tests.accounts.factories import OrganizationFactory, make_member
from tests.conftest import auth_for, make_request_with_auth


@pytest.mark.django_db
class TestGetCurrentUser:
    def test_member_with_organization(self, request_factory: RequestFactory) -> None:
        org = OrganizationFactory.create(slug="bunga-mawar")
        owner = make_member(org)
        request = make_request_with_auth(request_factory.get("/api/v1/auth/me"), auth_for(owner))

        response = get_current_user(request)

        assert response.email == owner.email
        assert response.roles == ["owner"]
        assert response.user.id == owner.id
        assert response.organization.slug == "bunga-mawar"

    def test_owner_before_onboarding(self, request_factory: RequestFactory) -> None:
        identity = Identity(subject="ayu@x.com", email="ayu@x.com", name="Ayu", roles=("owner",))
        request = make_request_with_auth(request_factory.get("/api/v1/auth/me"), AuthContext(identity=identity))

        response = get_current_user(request)

        assert response.name == "Ayu"
        assert response.user is None
        assert response.organization is None


@pytest.mark.django_db
class TestStaffEndpoints:
    @patch("apps.accounts.services.OrganizationProvisioner")
    def test_invite_staff(self, mock_provisioner_cls: MagicMock, request_factory: RequestFactory) -> None:
        mock_provisioner_cls.return_value.invite_member.return_value = "member-new"
        org = OrganizationFactory.create()
        owner = make_member(org)
        request = make_request_with_auth(request_factory.post("/api/v1/staff"), auth_for(owner))

        response = invite_staff(request, InviteStaffRequest(email="sari@x.com", name="Sari", role="packer"))

        assert response.email == "sari@x.com"
        assert response.role == "packer"
        assert response.invited is True

    def test_list_staff(self, request_factory: RequestFactory) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        make_member(org, role="packer")
        request = make_request_with_auth(request_factory.get("/api/v1/staff"), auth_for(owner))

        assert len(list_staff(request)) == 2

    def test_packer_cannot_list_staff(self, request_factory: RequestFactory) -> None:
        org = OrganizationFactory.create()
        packer = make_member(org, role="packer")
        request = make_request_with_auth(request_factory.get("/api/v1/staff"), auth_for(packer))

        with pytest.raises(AccessDeniedError):
            list_staff(request)

    @patch("apps.accounts.services.OrganizationProvisioner")
    def test_remove_staff(self, mock_provisioner_cls: MagicMock, request_factory: RequestFactory) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        packer = make_member(org, role="packer")
        request = make_request_with_auth(request_factory.delete(f"/api/v1/staff/{packer.id}"), auth_for(owner))

        response = remove_staff(request, packer.id)

        assert response.message == "Staff member removed"
        mock_provisioner_cls.return_value.remove_member.assert_called_once()
