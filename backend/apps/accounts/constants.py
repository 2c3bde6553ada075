"""
Stytch configuration constants.

These values must match the configuration in the Stytch Dashboard.
See: https://stytch.com/docs/b2b/guides/rbac/overview
"""


class StytchRoles:
    """
    Stytch RBAC role identifiers.

    These must match the role IDs configured in the Stytch Dashboard.
    """

    ADMIN = "stytch_admin"
    """Default role Stytch grants to an organization's creator."""

    OWNER = "owner"
    ADMIN_STAFF = "admin"
    PACKER = "packer"


LOGIN_AUTH_METHODS = ["password", "magic_link"]
"""Auth methods enabled on every tenant organization."""
