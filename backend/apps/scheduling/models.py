"""
Scheduling models - providers, their bookable events, and bookings.
"""

from django.conf import settings
from django.db import models

from apps.core.models import TimestampedModel


class Provider(TimestampedModel):
    """
    A user acting as a bookable professional within one department.

    A user holds at most one provider identity.
    """

    department = models.ForeignKey(
        "organizations.Department",
        on_delete=models.CASCADE,
        related_name="providers",
    )
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="provider",
    )
    bio = models.TextField(blank=True, default="")
    specialization = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Provider {self.user_id} ({self.department_id})"

    @property
    def organization_id(self) -> int:
        return self.department.organization_id


class Event(TimestampedModel):
    """
    A bookable time slot published by a provider.

    ``is_booked`` mirrors whether a Booking row references the event and is
    only flipped inside the booking transaction.
    """

    provider = models.ForeignKey(
        Provider,
        on_delete=models.CASCADE,
        related_name="events",
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    start = models.DateTimeField(db_index=True)
    end = models.DateTimeField()
    duration = models.PositiveIntegerField(help_text="Length in minutes, derived from start/end")
    price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    is_booked = models.BooleanField(default=False, db_index=True)

    class Meta:
        ordering = ["start"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end__gt=models.F("start")),
                name="event_end_after_start",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.title} @ {self.start.isoformat()}"


class Booking(models.Model):
    """A client's reservation of exactly one event."""

    class Status(models.TextChoices):
        CONFIRMED = "confirmed", "Confirmed"

    event = models.OneToOneField(
        Event,
        on_delete=models.CASCADE,
        related_name="booking",
    )
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.CONFIRMED,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Booking {self.pk} for event {self.event_id}"
