"""
Authentication context for request lifecycle.

Provides a typed container for authentication state that the bearer
security class populates and endpoints consume.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from apps.core.exceptions import Forbidden, Unauthorized

if TYPE_CHECKING:
    from apps.accounts.models import ApiKey, User


@dataclass
class AuthContext:
    """
    Authentication context attached to requests as ``request.auth``.

    Attributes:
        user: The authenticated User, or None if not authenticated
        api_key: The ApiKey the request was authenticated with, or None
    """

    user: "User | None" = None
    api_key: "ApiKey | None" = None

    @property
    def is_authenticated(self) -> bool:
        """Check if the request carries a resolved user."""
        return self.user is not None

    def require_user(self) -> "User":
        """
        Get the authenticated user or raise Unauthorized.

        Use this in endpoints to get a type-narrowed user.
        """
        if self.user is None:
            raise Unauthorized("Unauthorized")
        return self.user

    def require_admin(self) -> "User":
        """
        Get the authenticated user and verify the system-wide admin role.

        Raises:
            Unauthorized: If not authenticated
            Forbidden: If not an admin
        """
        user = self.require_user()
        if not user.is_admin:
            raise Forbidden("Forbidden - Admin access required")
        return user
