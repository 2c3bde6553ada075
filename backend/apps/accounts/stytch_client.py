"""
Stytch B2B client wrapper.

Provides a singleton client instance configured from Django settings.
"""

from collections.abc import Iterable
from functools import lru_cache
from typing import Any

import stytch
from django.conf import settings

from apps.accounts.constants import StytchRoles


@lru_cache(maxsize=1)
def get_stytch_client() -> stytch.B2BClient:
    """
    Get configured Stytch B2B client (singleton).

    Uses lru_cache to ensure only one client instance is created.
    """
    return stytch.B2BClient(
        project_id=settings.STYTCH_PROJECT_ID,
        secret=settings.STYTCH_SECRET,
    )


def role_ids_from_stytch(roles: Iterable[Any] | None) -> list[str]:
    """
    Map Stytch RBAC roles to local role names (owner/admin/packer).

    Accepts either role id strings (member sessions) or role objects with a
    ``role_id`` attribute (members). The organization creator's
    ``stytch_admin`` role counts as owner.
    """
    mapping = {
        StytchRoles.ADMIN: "owner",
        StytchRoles.OWNER: "owner",
        StytchRoles.ADMIN_STAFF: "admin",
        StytchRoles.PACKER: "packer",
    }
    result: list[str] = []
    for role in roles or []:
        role_id = role if isinstance(role, str) else getattr(role, "role_id", None)
        local = mapping.get(role_id or "")
        if local and local not in result:
            result.append(local)
    return result
