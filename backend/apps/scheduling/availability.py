"""
Provider availability - publishing, editing and retracting bookable events.

Timing rules are evaluated against an explicit AvailabilityWindow so that
callers (and tests) control the daily window and the clock.
"""

from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal
from zoneinfo import ZoneInfo

from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.core.exceptions import Conflict, NotFound, ValidationError
from apps.core.logging import get_logger
from apps.organizations.permissions import (
    require_enabled_organization,
    require_provider_owner,
)
from apps.scheduling.models import Event, Provider
from config.settings.base import settings

logger = get_logger(__name__)

_UNSET = object()


@dataclass(frozen=True)
class AvailabilityWindow:
    """
    Daily window events must fit in, in local time.

    Events start no earlier than ``start_hour``:00 and end no later than
    ``end_hour``:00 on the same local day.
    """

    start_hour: int = 8
    end_hour: int = 20
    timezone: str = "UTC"

    def __post_init__(self):
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError(
                f"Invalid availability window {self.start_hour}-{self.end_hour}"
            )

    @classmethod
    def from_settings(cls) -> "AvailabilityWindow":
        return cls(
            start_hour=settings.SCHEDULING_WINDOW_START_HOUR,
            end_hour=settings.SCHEDULING_WINDOW_END_HOUR,
            timezone=settings.SCHEDULING_TIMEZONE,
        )

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def closing_time(self, local_start: datetime) -> datetime:
        """Window close on the local day of ``local_start``."""
        if self.end_hour == 24:
            closing = datetime.combine(local_start.date(), time.max)
        else:
            closing = datetime.combine(local_start.date(), time(self.end_hour))
        return closing.replace(tzinfo=local_start.tzinfo)


def _as_aware(value: datetime, window: AvailabilityWindow) -> datetime:
    if timezone.is_naive(value):
        return timezone.make_aware(value, window.tzinfo)
    return value


def validate_event_times(
    start: datetime,
    end: datetime,
    window: AvailabilityWindow,
    now: datetime | None,
) -> int:
    """
    Check an event's bounds and return its duration in minutes.

    Passing ``now=None`` skips the past-start check, for edits that keep
    an existing start.

    Raises:
        ValidationError: Invalid range, past start, or outside the daily window
    """
    if end <= start:
        raise ValidationError("End time must be after start time")
    if now is not None and start < now:
        raise ValidationError("Cannot create events in the past")

    local_start = start.astimezone(window.tzinfo)
    local_end = end.astimezone(window.tzinfo)

    if local_start.hour < window.start_hour:
        raise ValidationError(
            f"Events must be between {window.start_hour:02d}:00 and {window.end_hour:02d}:00"
        )
    if local_end.date() != local_start.date() or local_end > window.closing_time(local_start):
        raise ValidationError(
            f"Events must be between {window.start_hour:02d}:00 and {window.end_hour:02d}:00"
        )

    return round((end - start).total_seconds() / 60)


def get_provider(provider_id: int) -> Provider:
    try:
        return Provider.objects.select_related("department", "user").get(pk=provider_id)
    except Provider.DoesNotExist:
        raise NotFound("Provider not found") from None


def get_event(event_id: int) -> Event:
    try:
        return Event.objects.select_related(
            "provider__user", "provider__department__organization"
        ).get(pk=event_id)
    except Event.DoesNotExist:
        raise NotFound("Event not found") from None


def _owned_event(user: User, event_id: int) -> Event:
    event = get_event(event_id)
    require_provider_owner(user, event.provider)
    return event


def create_event(
    user: User,
    provider_id: int,
    title: str,
    start: datetime,
    end: datetime,
    description: str | None = None,
    price: Decimal | None = None,
    *,
    window: AvailabilityWindow | None = None,
    now: datetime | None = None,
) -> Event:
    """
    Publish a bookable slot for the caller's provider profile.

    Raises:
        NotFound: Provider does not exist
        Forbidden: Caller is not the provider, or the organization is disabled
        ValidationError: Missing fields or timing rules violated
    """
    window = window or AvailabilityWindow.from_settings()
    now = now or timezone.now()

    provider = get_provider(provider_id)
    require_provider_owner(user, provider)
    require_enabled_organization(provider.department.organization_id)

    if not title or start is None or end is None:
        raise ValidationError("provider_id, title, start, and end are required")

    start = _as_aware(start, window)
    end = _as_aware(end, window)
    duration = validate_event_times(start, end, window, now)

    event = Event.objects.create(
        provider=provider,
        title=title,
        description=description,
        start=start,
        end=end,
        duration=duration,
        price=price,
        is_booked=False,
    )
    logger.info(
        "event_created",
        event_id=event.id,
        provider_id=provider.id,
        start=start.isoformat(),
        duration=duration,
    )
    return event


def update_event(
    user: User,
    event_id: int,
    *,
    title=_UNSET,
    description=_UNSET,
    start=_UNSET,
    end=_UNSET,
    price=_UNSET,
    window: AvailabilityWindow | None = None,
    now: datetime | None = None,
) -> Event:
    """
    Patch an unbooked event.

    Omitted fields keep their current values. The effective bounds are
    re-validated and the duration recomputed from them; only a new start
    is held to the no-past rule.

    Raises:
        NotFound: Event does not exist
        Forbidden: Caller is not the provider, or the organization is disabled
        Conflict: The event is booked
        ValidationError: Timing rules violated
    """
    window = window or AvailabilityWindow.from_settings()
    now = now or timezone.now()

    with transaction.atomic():
        event = _owned_event(user, event_id)
        # Lock so a concurrent booking cannot slip in between check and write
        event = Event.objects.select_for_update().get(pk=event.pk)
        if event.is_booked:
            raise Conflict("Cannot update a booked event")
        require_enabled_organization(event.provider.department.organization_id)

        if title is not _UNSET:
            if not title:
                raise ValidationError("Title cannot be empty")
            event.title = title
        if description is not _UNSET:
            event.description = description
        if price is not _UNSET:
            event.price = price

        start_patched = start not in (_UNSET, None)
        effective_start = _as_aware(start, window) if start_patched else event.start
        effective_end = _as_aware(end, window) if end not in (_UNSET, None) else event.end
        # A started event may still be retitled or repriced
        event.duration = validate_event_times(
            effective_start, effective_end, window, now if start_patched else None
        )
        event.start = effective_start
        event.end = effective_end
        event.save()

    logger.info("event_updated", event_id=event.id, duration=event.duration)
    return event


def delete_event(user: User, event_id: int) -> None:
    """
    Retract an unbooked event.

    Raises:
        NotFound / Forbidden / Conflict (booked)
    """
    with transaction.atomic():
        event = _owned_event(user, event_id)
        event = Event.objects.select_for_update().get(pk=event.pk)
        if event.is_booked:
            raise Conflict("Cannot delete a booked event. Cancel the booking first.")
        event.delete()

    logger.info("event_deleted", event_id=event_id)


def list_events(
    provider_id: int | None = None,
    department_id: int | None = None,
    organization_id: int | None = None,
    available_only: bool = False,
    *,
    now: datetime | None = None,
) -> list[Event]:
    """
    List events ordered by start.

    Only the most specific of provider, department or organization is applied.
    ``available_only`` keeps unbooked events that have not started yet.
    """
    queryset = Event.objects.select_related("provider__user", "provider__department")

    if provider_id:
        queryset = queryset.filter(provider_id=provider_id)
    elif department_id:
        queryset = queryset.filter(provider__department_id=department_id)
    elif organization_id:
        queryset = queryset.filter(provider__department__organization_id=organization_id)

    if available_only:
        queryset = queryset.filter(is_booked=False, start__gte=now or timezone.now())

    return list(queryset.order_by("start"))
