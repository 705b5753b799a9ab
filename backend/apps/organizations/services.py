"""
Organization services - admin lifecycle, public listing and departments.
"""

from django.db import IntegrityError, transaction
from django.db.models import Count
from django.utils.text import slugify

from apps.accounts.models import User
from apps.core.exceptions import Conflict, NotFound, ValidationError
from apps.core.logging import get_logger
from apps.notifications.services import notify_organization_created
from apps.organizations.models import Department, Member, Organization
from apps.organizations.permissions import (
    require_enabled_organization,
    require_role,
)

logger = get_logger(__name__)


def get_organization(organization_id: int) -> Organization:
    try:
        return Organization.objects.get(pk=organization_id)
    except Organization.DoesNotExist:
        raise NotFound("Organization not found") from None


def ensure_membership(organization: Organization, user: User) -> Member:
    member, created = Member.objects.get_or_create(organization=organization, user=user)
    if created:
        logger.info("member_added", organization_id=organization.id, user_id=user.id)
    return member


def unique_slug(name: str) -> str:
    """
    Slugify a name, appending -2, -3, ... until it is unused.
    """
    base = slugify(name) or "organization"
    slug = base
    suffix = 2
    while Organization.objects.filter(slug=slug).exists():
        slug = f"{base}-{suffix}"
        suffix += 1
    return slug


def create_organization(
    name: str,
    slug: str,
    owner_id: int,
    logo: str | None = None,
) -> Organization:
    """
    Create a disabled organization with its owner (admin operation).

    The owner becomes a member and is promoted to OWNER unless already ADMIN.
    The organization stays disabled until a subscription activates it.

    Raises:
        ValidationError: Missing name, slug or owner
        Conflict: Slug already in use
        NotFound: Owner user does not exist
    """
    if not name or not slug or not owner_id:
        raise ValidationError("Name, slug, and owner_id are required")

    if Organization.objects.filter(slug=slug).exists():
        raise Conflict("Organization with this slug already exists")

    try:
        owner = User.objects.get(pk=owner_id)
    except User.DoesNotExist:
        raise NotFound("Owner user not found") from None

    try:
        with transaction.atomic():
            organization = Organization.objects.create(
                name=name,
                slug=slug,
                logo=logo or "",
                enabled=False,
            )
            Member.objects.create(organization=organization, user=owner)
            if owner.role != User.Role.ADMIN:
                owner.role = User.Role.OWNER
                owner.save(update_fields=["role", "updated_at"])
    except IntegrityError:
        raise Conflict("Organization with this slug already exists") from None

    logger.info(
        "organization_created",
        organization_id=organization.id,
        slug=organization.slug,
        owner_id=owner.id,
    )
    notify_organization_created(organization, owner)
    return organization


def set_organization_enabled(organization_id: int, enabled: bool) -> tuple[Organization, str]:
    """
    Enable or disable an organization (admin override of subscription state).

    Returns:
        Tuple of (organization, human-readable message)
    """
    organization = get_organization(organization_id)
    organization.enabled = enabled
    organization.save(update_fields=["enabled", "updated_at"])

    logger.info("organization_toggled", organization_id=organization.id, enabled=enabled)
    return organization, f"Organization {'enabled' if enabled else 'disabled'} successfully"


def delete_organization(organization_id: int) -> None:
    organization = get_organization(organization_id)
    organization.delete()
    logger.info("organization_deleted", organization_id=organization_id)


def list_organizations() -> list[Organization]:
    """All organizations with member and department counts (admin)."""
    return list(
        Organization.objects.annotate(
            member_count=Count("members", distinct=True),
            department_count=Count("department_set", distinct=True),
        )
    )


def list_public_organizations() -> list[Organization]:
    return list(Organization.objects.order_by("name").only("id", "name", "slug", "logo"))


def admin_overview() -> dict[str, int]:
    """Platform-wide counts for the admin dashboard."""
    from apps.scheduling.models import Booking, Event, Provider

    return {
        "organizations": Organization.objects.count(),
        "enabled_organizations": Organization.objects.filter(enabled=True).count(),
        "users": User.objects.count(),
        "members": Member.objects.count(),
        "departments": Department.objects.count(),
        "providers": Provider.objects.count(),
        "events": Event.objects.count(),
        "bookings": Booking.objects.count(),
    }


# =============================================================================
# Departments
# =============================================================================


def create_department(user: User, organization_id: int, name: str) -> Department:
    """
    Create a department (organization owner, enabled organization).

    Raises:
        ValidationError: Missing name
        Forbidden: Caller is not an owner member, or the organization is disabled
        NotFound: Organization does not exist
    """
    require_role(user, organization_id, User.Role.OWNER)
    organization = require_enabled_organization(organization_id)

    if not name:
        raise ValidationError("Name and organization_id are required")

    department = Department.objects.create(organization=organization, name=name)
    logger.info(
        "department_created",
        department_id=department.id,
        organization_id=organization.id,
    )
    return department


def list_departments(organization_id: int) -> list[Department]:
    return list(
        Department.objects.filter(organization_id=organization_id).prefetch_related(
            "providers__user"
        )
    )


def get_department(department_id: int) -> Department:
    try:
        return Department.objects.select_related("organization").get(pk=department_id)
    except Department.DoesNotExist:
        raise NotFound("Department not found") from None


def delete_department(user: User, department_id: int) -> None:
    """Delete a department and its providers (organization owner)."""
    department = get_department(department_id)
    require_role(user, department.organization_id, User.Role.OWNER)

    department.delete()
    logger.info(
        "department_deleted",
        department_id=department_id,
        organization_id=department.organization_id,
    )
