"""
Account and staff API endpoints.
"""

from ninja import Router

from apps.accounts import services
from apps.accounts.models import User
from apps.accounts.schemas import (
    InviteStaffRequest,
    MeResponse,
    OrganizationInfo,
    ResendInviteResponse,
    UpdateStaffRoleRequest,
    UserInfo,
)
from apps.core.auth import get_auth_context
from apps.core.schemas import ErrorResponse, MessageResponse
from apps.core.security import BearerAuth
from apps.core.types import AuthenticatedHttpRequest

router = Router(tags=["auth"])
staff_router = Router(tags=["staff"])
bearer_auth = BearerAuth()


def _user_info(user: User) -> UserInfo:
    return UserInfo(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        is_active=user.is_active,
        invited=bool(user.stytch_member_id),
        created_at=user.created_at,
    )


@router.get(
    "/me",
    response={200: MeResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="getCurrentUser",
    summary="Get current user",
)
def get_current_user(request: AuthenticatedHttpRequest) -> MeResponse:
    """
    Current identity with its local user and organization.

    ``user`` is null for a signed-in owner who has not onboarded yet.
    """
    auth = get_auth_context(request)
    identity = auth.require_identity()
    org = auth.organization
    return MeResponse(
        subject=identity.subject,
        email=identity.email,
        name=identity.name or (auth.user.name if auth.user else ""),
        roles=sorted(auth.roles),
        user=_user_info(auth.user) if auth.user else None,
        organization=(
            OrganizationInfo(
                id=org.id,
                name=org.name,
                slug=org.slug,
                onboarding_completed=org.onboarding_completed,
            )
            if org
            else None
        ),
    )


@staff_router.get(
    "",
    response={200: list[UserInfo], 401: ErrorResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="listStaff",
    summary="List organization members",
)
def list_staff(request: AuthenticatedHttpRequest) -> list[UserInfo]:
    return [_user_info(u) for u in services.list_staff(get_auth_context(request))]


@staff_router.post(
    "",
    response={200: UserInfo, 400: ErrorResponse, 401: ErrorResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="inviteStaff",
    summary="Invite an admin or packer",
)
def invite_staff(request: AuthenticatedHttpRequest, payload: InviteStaffRequest) -> UserInfo:
    """Creates the local user, then sends a Stytch invite email when the tenant is linked."""
    user = services.invite_staff(
        get_auth_context(request),
        email=payload.email,
        name=payload.name,
        role=payload.role,
    )
    return _user_info(user)


@staff_router.patch(
    "/{user_id}/role",
    response={200: UserInfo, 400: ErrorResponse, 401: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="updateStaffRole",
    summary="Change a staff member's role",
)
def update_staff_role(
    request: AuthenticatedHttpRequest,
    user_id: int,
    payload: UpdateStaffRoleRequest,
) -> UserInfo:
    user = services.update_staff_role(get_auth_context(request), user_id, payload.role)
    return _user_info(user)


@staff_router.delete(
    "/{user_id}",
    response={200: MessageResponse, 400: ErrorResponse, 401: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="removeStaff",
    summary="Remove a staff member",
)
def remove_staff(request: AuthenticatedHttpRequest, user_id: int) -> MessageResponse:
    services.remove_staff(get_auth_context(request), user_id)
    return MessageResponse(message="Staff member removed")


@staff_router.post(
    "/{user_id}/resend-invite",
    response={200: ResendInviteResponse, 401: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="resendStaffInvite",
    summary="Resend a staff invite email",
)
def resend_invite(request: AuthenticatedHttpRequest, user_id: int) -> ResendInviteResponse:
    sent = services.resend_staff_invite(get_auth_context(request), user_id)
    return ResendInviteResponse(sent=sent)
