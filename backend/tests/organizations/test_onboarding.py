"""
Tests for tenant provisioning: onboarding, pre-login readiness and repair.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from apps.accounts.identity import OrganizationProvisioner
from apps.accounts.models import User
from apps.core.auth import Identity
from apps.core.exceptions import (
    AlreadyOnboardedError,
    NotAuthenticatedError,
    RateLimitedError,
    RemoteProvisioningError,
    SlugTakenError,
    ValidationError,
)
from apps.organizations.models import Organization
from apps.organizations.onboarding import (
    complete_onboarding,
    ensure_org_login_ready,
    fix_remote_org_link,
    get_onboarding_status,
    provision_tenant,
)
from tests.accounts.factories import OrganizationFactory, UserFactory, make_member
from tests.conftest import auth_for


def owner_identity(email: str = "ayu@bungamawar.com", remote_org_id: str = "") -> Identity:
    return Identity(
        subject=email,
        email=email,
        name="Ayu",
        member_id="member-session",
        remote_org_id=remote_org_id,
        roles=("owner",),
    )


class FakeStytchOrganizations:
    """Remembers created organizations so search finds them afterwards."""

    def __init__(self) -> None:
        self.created: dict[str, str] = {}
        self.create_calls = 0
        self.members = MagicMock()

    def search(self, query):
        slug = query["operands"][0]["filter_value"][0]
        matches = [
            SimpleNamespace(organization_slug=s, organization_id=i) for s, i in self.created.items() if s == slug
        ]
        return SimpleNamespace(organizations=matches)

    def create(self, organization_name, organization_slug, trusted_metadata):
        self.create_calls += 1
        organization_id = f"organization-{organization_slug}"
        self.created[organization_slug] = organization_id
        return SimpleNamespace(organization=SimpleNamespace(organization_id=organization_id))

    def get(self, organization_id):
        return SimpleNamespace(organization=SimpleNamespace(auth_methods="ALL_ALLOWED", allowed_auth_methods=[]))

    def update(self, **kwargs):
        return SimpleNamespace(status_code=200)


@pytest.fixture
def fake_stytch() -> SimpleNamespace:
    return SimpleNamespace(organizations=FakeStytchOrganizations())


@pytest.mark.django_db
class TestCompleteOnboarding:
    def test_creates_local_records_and_links_remote(self, mock_provisioner) -> None:
        result = complete_onboarding(
            owner_identity(),
            store_name="Bunga Mawar",
            slug="Bunga-Mawar",
            provisioner=mock_provisioner,
        )

        org = Organization.objects.get(id=result.org_id)
        user = User.objects.get(id=result.user_id)
        assert result.slug == "bunga-mawar"
        assert result.remote_org_id == "organization-test-1"
        assert org.onboarding_completed is True
        assert org.owner == user
        assert org.stytch_org_id == "organization-test-1"
        assert user.organization == org
        assert user.role == "owner"
        assert user.stytch_member_id == "member-test-owner"
        mock_provisioner.enable_password_login.assert_called_once_with("organization-test-1")
        mock_provisioner.update_member_metadata.assert_called_once_with(
            "organization-test-1",
            "member-test-owner",
            {"org_id": org.id, "org_slug": "bunga-mawar", "role": "owner"},
        )

    def test_passes_session_organization_to_provisioner(self, mock_provisioner) -> None:
        complete_onboarding(
            owner_identity(remote_org_id="organization-session"),
            store_name="Bunga Mawar",
            slug="bunga-mawar",
            provisioner=mock_provisioner,
        )

        kwargs = mock_provisioner.ensure_organization.call_args.kwargs
        assert kwargs["session_org_id"] == "organization-session"

    def test_second_call_is_already_onboarded(self, mock_provisioner) -> None:
        identity = owner_identity()
        complete_onboarding(identity, store_name="Bunga Mawar", slug="bunga-mawar", provisioner=mock_provisioner)

        with pytest.raises(AlreadyOnboardedError):
            complete_onboarding(identity, store_name="Bunga Mawar", slug="bunga-mawar", provisioner=mock_provisioner)

    def test_already_onboarded_even_when_remote_failed(self, mock_provisioner) -> None:
        mock_provisioner.ensure_organization.return_value = None
        identity = owner_identity()

        first = complete_onboarding(identity, store_name="Bunga Mawar", slug="bunga-mawar", provisioner=mock_provisioner)

        assert first.remote_org_id is None
        assert Organization.objects.get(id=first.org_id).stytch_org_id == ""
        mock_provisioner.add_owner.assert_not_called()
        with pytest.raises(AlreadyOnboardedError):
            complete_onboarding(identity, store_name="Other", slug="toko-lain", provisioner=mock_provisioner)

    def test_member_add_failure_still_links_org(self, mock_provisioner) -> None:
        mock_provisioner.add_owner.return_value = None

        result = complete_onboarding(
            owner_identity(), store_name="Bunga Mawar", slug="bunga-mawar", provisioner=mock_provisioner
        )

        assert Organization.objects.get(id=result.org_id).stytch_org_id == "organization-test-1"
        assert User.objects.get(id=result.user_id).stytch_member_id == "member-session"
        mock_provisioner.update_member_metadata.assert_not_called()

    def test_slug_taken(self, mock_provisioner) -> None:
        OrganizationFactory.create(slug="bunga-mawar")

        with pytest.raises(SlugTakenError):
            complete_onboarding(owner_identity(), store_name="Bunga Mawar", slug="bunga-mawar", provisioner=mock_provisioner)
        assert not User.objects.filter(email="ayu@bungamawar.com").exists()

    @pytest.mark.parametrize("slug", ["ab", "dev", "bunga_mawar", "x" * 49])
    def test_invalid_slug(self, slug: str, mock_provisioner) -> None:
        with pytest.raises(ValidationError):
            complete_onboarding(owner_identity(), store_name="Bunga Mawar", slug=slug, provisioner=mock_provisioner)

    def test_blank_store_name(self, mock_provisioner) -> None:
        with pytest.raises(ValidationError, match="Store name"):
            complete_onboarding(owner_identity(), store_name="  ", slug="bunga-mawar", provisioner=mock_provisioner)

    def test_requires_identity(self, mock_provisioner) -> None:
        with pytest.raises(NotAuthenticatedError):
            complete_onboarding(None, store_name="Bunga Mawar", slug="bunga-mawar", provisioner=mock_provisioner)

    def test_rate_limited_after_three_attempts(self, mock_provisioner) -> None:
        identity = owner_identity()
        for _ in range(3):
            with pytest.raises(ValidationError):
                complete_onboarding(identity, store_name="X", slug="no", provisioner=mock_provisioner)

        with pytest.raises(RateLimitedError) as exc_info:
            complete_onboarding(identity, store_name="Bunga Mawar", slug="bunga-mawar", provisioner=mock_provisioner)
        assert exc_info.value.retry_after == 3600

    def test_reuses_existing_user_without_org(self, mock_provisioner) -> None:
        existing = UserFactory.create(email="ayu@bungamawar.com", organization=None, role="packer")

        result = complete_onboarding(
            owner_identity(), store_name="Bunga Mawar", slug="bunga-mawar", provisioner=mock_provisioner
        )

        existing.refresh_from_db()
        assert result.user_id == existing.id
        assert existing.role == "owner"


@pytest.mark.django_db
class TestOnboardingStatus:
    def test_before_onboarding(self) -> None:
        from apps.core.auth import AuthContext

        status = get_onboarding_status(AuthContext(identity=owner_identity()))

        assert status.has_organization is False
        assert status.onboarding_completed is False
        assert status.role is None

    def test_after_onboarding(self) -> None:
        org = OrganizationFactory.create(slug="bunga-mawar")
        owner = make_member(org)

        status = get_onboarding_status(auth_for(owner))

        assert status.has_organization is True
        assert status.onboarding_completed is True
        assert status.slug == "bunga-mawar"


@pytest.mark.django_db
class TestEnsureOrgLoginReady:
    def test_is_idempotent(self, fake_stytch) -> None:
        provisioner = OrganizationProvisioner(client=fake_stytch)

        first = ensure_org_login_ready("bunga-mawar", "Bunga Mawar", provisioner=provisioner)
        second = ensure_org_login_ready("bunga-mawar", "Bunga Mawar", provisioner=provisioner)

        assert first.remote_org_id == second.remote_org_id == "organization-bunga-mawar"
        assert first.login_enabled is True
        assert fake_stytch.organizations.create_calls == 1

    def test_uses_linked_local_org(self, mock_provisioner) -> None:
        OrganizationFactory.create(slug="bunga-mawar", stytch_org_id="organization-linked")

        result = ensure_org_login_ready("bunga-mawar", provisioner=mock_provisioner)

        assert result.remote_org_id == "organization-linked"
        mock_provisioner.ensure_organization.assert_not_called()
        mock_provisioner.enable_password_login.assert_called_once_with("organization-linked")

    def test_links_unlinked_local_org(self, mock_provisioner) -> None:
        org = OrganizationFactory.create(slug="bunga-mawar", stytch_org_id="", name="Bunga Mawar")

        ensure_org_login_ready("bunga-mawar", provisioner=mock_provisioner)

        org.refresh_from_db()
        assert org.stytch_org_id == "organization-test-1"
        assert mock_provisioner.ensure_organization.call_args.kwargs["name"] == "Bunga Mawar"

    def test_remote_failure_raises(self, mock_provisioner) -> None:
        mock_provisioner.ensure_organization.return_value = None

        with pytest.raises(RemoteProvisioningError):
            ensure_org_login_ready("bunga-mawar", provisioner=mock_provisioner)

    def test_rate_limited_per_slug(self, mock_provisioner) -> None:
        for _ in range(10):
            ensure_org_login_ready("bunga-mawar", provisioner=mock_provisioner)

        with pytest.raises(RateLimitedError):
            ensure_org_login_ready("bunga-mawar", provisioner=mock_provisioner)
        ensure_org_login_ready("toko-lain", provisioner=mock_provisioner)


@pytest.mark.django_db
class TestProvisionTenant:
    def test_creates_owner_and_org(self) -> None:
        result = provision_tenant(email="Budi@Example.com", name="Budi")

        org = Organization.objects.get(id=result.org_id)
        assert result.created is True
        assert result.slug == "budi-s-business"
        assert result.subdomain == "budi-s-business.dev.whatthepack.today"
        assert org.name == "Budi's Business"
        assert org.onboarding_completed is False
        assert org.owner.email == "budi@example.com"

    def test_slug_collision_gets_suffix(self) -> None:
        OrganizationFactory.create(slug="bunga-mawar")

        result = provision_tenant(email="a@x.com", name="", org_name="Bunga Mawar")

        assert result.slug == "bunga-mawar-2"

    def test_existing_owner_returns_their_org(self) -> None:
        org = OrganizationFactory.create(slug="bunga-mawar")
        owner = make_member(org, email="ayu@bungamawar.com")

        result = provision_tenant(email="ayu@bungamawar.com", name="Ayu")

        assert result.created is False
        assert result.org_id == org.id
        assert result.user_id == owner.id


@pytest.mark.django_db
class TestFixRemoteOrgLink:
    def test_links_org_and_owner(self, mock_provisioner) -> None:
        org = OrganizationFactory.create(slug="bunga-mawar", stytch_org_id="")
        owner = make_member(org)

        result = fix_remote_org_link(org, provisioner=mock_provisioner)

        org.refresh_from_db()
        owner.refresh_from_db()
        assert result.already_linked is False
        assert result.owner_added is True
        assert result.login_enabled is True
        assert org.stytch_org_id == "organization-test-1"
        assert owner.stytch_member_id == "member-test-owner"

    def test_already_linked_is_noop(self, mock_provisioner) -> None:
        org = OrganizationFactory.create(stytch_org_id="organization-existing")

        result = fix_remote_org_link(org, provisioner=mock_provisioner)

        assert result.already_linked is True
        mock_provisioner.ensure_organization.assert_not_called()

    def test_remote_failure_raises(self, mock_provisioner) -> None:
        mock_provisioner.ensure_organization.return_value = None
        org = OrganizationFactory.create(stytch_org_id="")

        with pytest.raises(RemoteProvisioningError):
            fix_remote_org_link(org, provisioner=mock_provisioner)
