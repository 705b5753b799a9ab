"""
Tenant access predicates.

Read-only checks shared by every mutating operation. Callers run the role
check first and the enablement check second, so a non-owner never learns
whether an organization is enabled.
"""

from typing import TYPE_CHECKING

from apps.accounts.models import User
from apps.core.exceptions import Forbidden, NotFound
from apps.organizations.models import Member, Organization

if TYPE_CHECKING:
    from apps.scheduling.models import Provider

DISABLED_ORGANIZATION_MESSAGE = (
    "Organization is not enabled. Please complete subscription to activate."
)


def is_member(user: User, organization_id: int) -> bool:
    return Member.objects.filter(user=user, organization_id=organization_id).exists()


def require_admin(user: User) -> None:
    if not user.is_admin:
        raise Forbidden("Forbidden - Admin access required")


def require_role(user: User, organization_id: int, role: str) -> None:
    """
    Require membership in the organization and the given global role.

    Raises:
        Forbidden: Not a member, or the user's role differs
    """
    if user.role != role or not is_member(user, organization_id):
        raise Forbidden(f"Forbidden - {User.Role(role).label} access required")


def require_membership(user: User, organization_id: int) -> None:
    if not is_member(user, organization_id):
        raise Forbidden("Forbidden - Not a member of this organization")


def require_enabled_organization(organization_id: int) -> Organization:
    """
    Return the organization if it exists and is enabled.

    Raises:
        NotFound: Organization does not exist
        Forbidden: Organization is disabled
    """
    try:
        organization = Organization.objects.get(pk=organization_id)
    except Organization.DoesNotExist:
        raise NotFound("Organization not found") from None

    if not organization.enabled:
        raise Forbidden(DISABLED_ORGANIZATION_MESSAGE)
    return organization


def require_provider_owner(user: User, provider: "Provider") -> None:
    if provider.user_id != user.id:
        raise Forbidden("Forbidden - Not the owner of this provider profile")
