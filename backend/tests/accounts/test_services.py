"""
Tests for staff management services.
"""

import pytest

from apps.accounts.models import User
from apps.accounts.services import (
    invite_staff,
    list_staff,
    remove_staff,
    resend_staff_invite,
    update_staff_role,
)
from apps.core.exceptions import AccessDeniedError, NotFoundError, ValidationError
from tests.accounts.factories import OrganizationFactory, UserFactory, make_member
from tests.conftest import auth_for


@pytest.mark.django_db
class TestInviteStaff:
    def test_creates_user_and_sends_invite(self, mock_provisioner) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)

        user = invite_staff(
            auth_for(owner),
            email="Sari@BungaMawar.com",
            name="Sari",
            role="packer",
            provisioner=mock_provisioner,
        )

        assert user.email == "sari@bungamawar.com"
        assert user.organization == org
        assert user.role == "packer"
        assert user.stytch_member_id == "member-test-invited"
        mock_provisioner.invite_member.assert_called_once_with(
            org.stytch_org_id, "sari@bungamawar.com", "Sari", "packer"
        )

    def test_unlinked_org_skips_remote_invite(self, mock_provisioner) -> None:
        org = OrganizationFactory.create(stytch_org_id="")
        owner = make_member(org)

        user = invite_staff(auth_for(owner), email="a@x.com", name="A", role="admin", provisioner=mock_provisioner)

        assert user.stytch_member_id == ""
        mock_provisioner.invite_member.assert_not_called()

    def test_remote_failure_keeps_local_user(self, mock_provisioner) -> None:
        mock_provisioner.invite_member.return_value = None
        org = OrganizationFactory.create()
        owner = make_member(org)

        user = invite_staff(auth_for(owner), email="a@x.com", name="A", role="admin", provisioner=mock_provisioner)

        assert User.objects.filter(id=user.id, organization=org).exists()
        assert user.stytch_member_id == ""

    def test_rejects_owner_role(self, mock_provisioner) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)

        with pytest.raises(ValidationError, match="admin or packer"):
            invite_staff(auth_for(owner), email="a@x.com", name="A", role="owner", provisioner=mock_provisioner)

    def test_rejects_user_of_another_org(self, mock_provisioner) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        make_member(OrganizationFactory.create(), role="packer", email="taken@x.com")

        with pytest.raises(ValidationError, match="already belongs"):
            invite_staff(auth_for(owner), email="taken@x.com", name="", role="packer", provisioner=mock_provisioner)

    def test_admin_cannot_invite(self, mock_provisioner) -> None:
        org = OrganizationFactory.create()
        admin = make_member(org, role="admin")

        with pytest.raises(AccessDeniedError):
            invite_staff(auth_for(admin), email="a@x.com", name="", role="packer", provisioner=mock_provisioner)

    def test_reactivates_removed_user(self, mock_provisioner) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        former = UserFactory.create(email="back@x.com", organization=None, is_active=False, role="packer")

        user = invite_staff(auth_for(owner), email="back@x.com", name="", role="admin", provisioner=mock_provisioner)

        assert user.id == former.id
        assert user.is_active is True
        assert user.role == "admin"


@pytest.mark.django_db
class TestStaffChanges:
    def test_list_staff_for_admin(self) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        admin = make_member(org, role="admin")
        make_member(OrganizationFactory.create(), role="packer")

        assert set(list_staff(auth_for(admin))) == {owner, admin}

    def test_packer_cannot_list_staff(self) -> None:
        org = OrganizationFactory.create()
        packer = make_member(org, role="packer")

        with pytest.raises(AccessDeniedError):
            list_staff(auth_for(packer))

    def test_update_role_syncs_remote(self, mock_provisioner) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        packer = make_member(org, role="packer")

        updated = update_staff_role(auth_for(owner), packer.id, "admin", provisioner=mock_provisioner)

        assert updated.role == "admin"
        mock_provisioner.update_member_role.assert_called_once_with(
            org.stytch_org_id, packer.stytch_member_id, "admin"
        )

    def test_owner_role_cannot_change(self, mock_provisioner) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)

        with pytest.raises(ValidationError):
            update_staff_role(auth_for(owner), owner.id, "admin", provisioner=mock_provisioner)

    def test_update_role_of_other_org_user_is_not_found(self, mock_provisioner) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        outsider = make_member(OrganizationFactory.create(), role="packer")

        with pytest.raises(NotFoundError):
            update_staff_role(auth_for(owner), outsider.id, "admin", provisioner=mock_provisioner)

    def test_remove_staff_unlinks_and_deactivates(self, mock_provisioner) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        packer = make_member(org, role="packer")
        member_id = packer.stytch_member_id

        remove_staff(auth_for(owner), packer.id, provisioner=mock_provisioner)

        packer.refresh_from_db()
        assert packer.organization is None
        assert packer.is_active is False
        mock_provisioner.remove_member.assert_called_once_with(org.stytch_org_id, member_id)

    def test_owner_cannot_be_removed(self, mock_provisioner) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)

        with pytest.raises(ValidationError):
            remove_staff(auth_for(owner), owner.id, provisioner=mock_provisioner)

    def test_resend_invite(self, mock_provisioner) -> None:
        org = OrganizationFactory.create()
        owner = make_member(org)
        packer = make_member(org, role="packer")

        assert resend_staff_invite(auth_for(owner), packer.id, provisioner=mock_provisioner) is True

    def test_resend_invite_without_remote_org(self, mock_provisioner) -> None:
        org = OrganizationFactory.create(stytch_org_id="")
        owner = make_member(org)
        packer = make_member(org, role="packer")

        assert resend_staff_invite(auth_for(owner), packer.id, provisioner=mock_provisioner) is False
        mock_provisioner.invite_member.assert_not_called()
