"""
Staff services - managing the admins and packers of a tenant.

Local records are authoritative. Stytch invites and role changes are synced
after the local write and never fail the request.
"""

from django.db import IntegrityError, transaction

from apps.accounts.identity import OrganizationProvisioner
from apps.accounts.models import Role, User
from apps.core.auth import AuthContext
from apps.core.exceptions import NotFoundError, ValidationError
from apps.core.logging import get_logger

logger = get_logger(__name__)

STAFF_ROLES = (Role.ADMIN, Role.PACKER)


def list_staff(auth: AuthContext) -> list[User]:
    """Active users of the caller's organization (owner or admin)."""
    _, org = auth.require_role(Role.OWNER, Role.ADMIN)
    return list(User.objects.filter(organization=org, is_active=True).order_by("role", "email"))


def _get_staff_member(org_id: int, user_id: int) -> User:
    user = User.objects.filter(id=user_id, organization_id=org_id, is_active=True).first()
    if user is None:
        raise NotFoundError("User not found")
    return user


def invite_staff(
    auth: AuthContext,
    *,
    email: str,
    name: str,
    role: str,
    provisioner: OrganizationProvisioner | None = None,
) -> User:
    """
    Add an admin or packer to the caller's organization (owner only).

    Raises:
        ValidationError: Bad role, or the email already belongs to an organization
    """
    _, org = auth.require_role(Role.OWNER)
    if role not in STAFF_ROLES:
        raise ValidationError("Role must be admin or packer")

    email = email.strip().lower()
    if not email:
        raise ValidationError("Email is required")

    try:
        with transaction.atomic():
            user = User.objects.select_for_update().filter(email=email).first()
            if user is not None and user.organization_id is not None:
                raise ValidationError("This user already belongs to an organization")
            if user is None:
                user = User.objects.create_user(
                    email=email,
                    name=name.strip(),
                    role=role,
                    organization=org,
                )
            else:
                user.name = name.strip() or user.name
                user.role = role
                user.organization = org
                user.is_active = True
                user.save(update_fields=["name", "role", "organization", "is_active", "updated_at"])
    except IntegrityError:
        raise ValidationError("This user already belongs to an organization") from None

    logger.info("staff_invited", org_id=org.id, usr_id=user.id, role=role)

    if org.stytch_org_id:
        member_id = (provisioner or OrganizationProvisioner()).invite_member(
            org.stytch_org_id, user.email, user.name, role
        )
        if member_id:
            user.stytch_member_id = member_id
            user.save(update_fields=["stytch_member_id", "updated_at"])
    else:
        logger.warning("staff_invite_skipped_no_remote_org", org_id=org.id, usr_id=user.id)

    return user


def resend_staff_invite(
    auth: AuthContext,
    user_id: int,
    provisioner: OrganizationProvisioner | None = None,
) -> bool:
    """Send the Stytch invite email again. Returns whether it was sent."""
    _, org = auth.require_role(Role.OWNER)
    user = _get_staff_member(org.id, user_id)
    if not org.stytch_org_id:
        return False
    member_id = (provisioner or OrganizationProvisioner()).invite_member(
        org.stytch_org_id, user.email, user.name, user.role
    )
    return member_id is not None


def update_staff_role(
    auth: AuthContext,
    user_id: int,
    role: str,
    provisioner: OrganizationProvisioner | None = None,
) -> User:
    """
    Switch a staff member between admin and packer (owner only).

    Raises:
        ValidationError: Bad role, or the target is the owner
        NotFoundError: If the user is not in the caller's organization
    """
    owner, org = auth.require_role(Role.OWNER)
    if role not in STAFF_ROLES:
        raise ValidationError("Role must be admin or packer")

    user = _get_staff_member(org.id, user_id)
    if user.id == owner.id or user.role == Role.OWNER:
        raise ValidationError("The owner's role cannot be changed")

    user.role = role
    user.save(update_fields=["role", "updated_at"])

    if org.stytch_org_id and user.stytch_member_id:
        (provisioner or OrganizationProvisioner()).update_member_role(
            org.stytch_org_id, user.stytch_member_id, role
        )
    return user


def remove_staff(
    auth: AuthContext,
    user_id: int,
    provisioner: OrganizationProvisioner | None = None,
) -> None:
    """Deactivate a staff member and unlink them from the organization (owner only)."""
    owner, org = auth.require_role(Role.OWNER)
    user = _get_staff_member(org.id, user_id)
    if user.id == owner.id or user.role == Role.OWNER:
        raise ValidationError("The owner cannot be removed")

    member_id = user.stytch_member_id
    user.organization = None
    user.is_active = False
    user.stytch_member_id = ""
    user.save(update_fields=["organization", "is_active", "stytch_member_id", "updated_at"])
    logger.info("staff_removed", org_id=org.id, usr_id=user.id)

    if org.stytch_org_id and member_id:
        (provisioner or OrganizationProvisioner()).remove_member(org.stytch_org_id, member_id)
