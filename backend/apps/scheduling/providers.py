"""
Provider services - assigning users to departments as bookable providers.
"""

from datetime import datetime

from django.db import IntegrityError, transaction
from django.db.models import Prefetch
from django.utils import timezone

from apps.accounts.models import User
from apps.core.exceptions import Conflict, NotFound, ValidationError
from apps.core.logging import get_logger
from apps.organizations.models import Department
from apps.organizations.permissions import require_enabled_organization, require_role
from apps.organizations.services import ensure_membership
from apps.scheduling.models import Event, Provider

logger = get_logger(__name__)


def assign_provider(
    user: User,
    organization_id: int,
    department_id: int,
    user_id: int,
    bio: str = "",
    specialization: str = "",
) -> Provider:
    """
    Make a user a provider in one of the organization's departments.

    The target becomes a member of the organization (if not already) and
    their global role becomes PROVIDER.

    Raises:
        Forbidden: Caller is not an owner member, or the organization is disabled
        NotFound: Organization, department or target user does not exist
        ValidationError: Department belongs to another organization
        Conflict: Target is an ADMIN/OWNER, or is already a provider
    """
    require_role(user, organization_id, User.Role.OWNER)
    organization = require_enabled_organization(organization_id)

    try:
        department = Department.objects.get(pk=department_id)
    except Department.DoesNotExist:
        raise NotFound("Department not found") from None
    if department.organization_id != organization.id:
        raise ValidationError("Department does not belong to this organization")

    try:
        target = User.objects.get(pk=user_id)
    except User.DoesNotExist:
        raise NotFound("User not found") from None

    if target.role in (User.Role.ADMIN, User.Role.OWNER):
        raise Conflict(f"Cannot assign a user with role {target.role} as a provider")
    if Provider.objects.filter(user=target).exists():
        raise Conflict("User is already a provider")

    try:
        with transaction.atomic():
            ensure_membership(organization, target)
            if target.role != User.Role.PROVIDER:
                target.role = User.Role.PROVIDER
                target.save(update_fields=["role", "updated_at"])
            provider = Provider.objects.create(
                department=department,
                user=target,
                bio=bio,
                specialization=specialization,
            )
    except IntegrityError:
        raise Conflict("User is already a provider") from None

    logger.info(
        "provider_assigned",
        provider_id=provider.id,
        user_id=target.id,
        department_id=department.id,
        organization_id=organization.id,
    )
    return provider


def list_providers(organization_id: int, department_id: int | None = None) -> list[Provider]:
    queryset = Provider.objects.select_related("user", "department").filter(
        department__organization_id=organization_id
    )
    if department_id:
        queryset = queryset.filter(department_id=department_id)
    return list(queryset)


def get_provider_with_upcoming_events(
    provider_id: int, *, now: datetime | None = None
) -> Provider:
    """
    Fetch a provider with ``upcoming_events`` (start >= now, by start).
    """
    upcoming = Event.objects.filter(start__gte=now or timezone.now()).order_by("start")
    try:
        return (
            Provider.objects.select_related("user", "department__organization")
            .prefetch_related(Prefetch("events", queryset=upcoming, to_attr="upcoming_events"))
            .get(pk=provider_id)
        )
    except Provider.DoesNotExist:
        raise NotFound("Provider not found") from None


def remove_provider(user: User, provider_id: int) -> None:
    """
    Remove a provider profile and its events (organization owner).

    The user keeps their membership and role.
    """
    try:
        provider = Provider.objects.select_related("department").get(pk=provider_id)
    except Provider.DoesNotExist:
        raise NotFound("Provider not found") from None

    require_role(user, provider.department.organization_id, User.Role.OWNER)
    provider.delete()
    logger.info("provider_removed", provider_id=provider_id)
