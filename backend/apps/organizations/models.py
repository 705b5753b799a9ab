"""
Organizations models - multi-tenancy foundation.
"""

from django.conf import settings
from django.db import models

from apps.core.models import TenantScopedModel, TimestampedModel


class Organization(TimestampedModel):
    """
    Tenant: a clinic or practice.

    An organization starts disabled and is enabled by a confirmed
    subscription (or by an administrator). Departments, providers and
    events can only be mutated while it is enabled.
    """

    name = models.CharField(max_length=255)
    slug = models.SlugField(
        max_length=255,
        unique=True,
        help_text="URL-safe identifier, e.g. 'city-clinic'",
    )
    logo = models.URLField(max_length=500, blank=True, default="")
    enabled = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Set by subscription activation or an admin toggle",
    )
    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Subscription bookkeeping, e.g. customer_id, subscription_status",
    )

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.name


class Member(TimestampedModel):
    """
    User <-> Organization membership.

    The role itself is the user's global role, not stored here.
    """

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="members",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="memberships",
    )

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "user"],
                name="unique_member_per_organization",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} in {self.organization_id}"


class Department(TenantScopedModel):
    """A unit of an organization that groups providers."""

    name = models.CharField(max_length=255)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name
