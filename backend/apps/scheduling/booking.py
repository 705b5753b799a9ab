"""
Booking services - reserving and releasing events.

An event is booked by at most one client. Three layers enforce it inside
one transaction: a row lock on the event, a conditional UPDATE that only
flips ``is_booked`` from False to True, and the one-to-one constraint on
Booking.event.
"""

from datetime import datetime

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.core.exceptions import Conflict, Forbidden, NotFound, ValidationError
from apps.core.logging import get_logger
from apps.notifications.services import notify_booking_cancelled, notify_booking_confirmed
from apps.organizations.permissions import require_provider_owner, require_role
from apps.scheduling.models import Booking, Event, Provider

logger = get_logger(__name__)

ALREADY_BOOKED_MESSAGE = "Event is already booked"


def create_booking(client: User, event_id: int, *, now: datetime | None = None) -> Booking:
    """
    Book an event for the caller.

    Raises:
        NotFound: Event does not exist
        Conflict: Event is already booked (including losing a concurrent race)
        ValidationError: Event has already started
    """
    now = now or timezone.now()

    with transaction.atomic():
        try:
            event = Event.objects.select_for_update().get(pk=event_id)
        except Event.DoesNotExist:
            raise NotFound("Event not found") from None

        if event.is_booked:
            raise Conflict(ALREADY_BOOKED_MESSAGE)
        if event.start < now:
            raise ValidationError("Cannot book past events")

        claimed = Event.objects.filter(pk=event.pk, is_booked=False).update(
            is_booked=True, updated_at=timezone.now()
        )
        if not claimed:
            raise Conflict(ALREADY_BOOKED_MESSAGE)

        try:
            with transaction.atomic():
                booking = Booking.objects.create(
                    event=event,
                    client=client,
                    status=Booking.Status.CONFIRMED,
                )
        except IntegrityError:
            raise Conflict(ALREADY_BOOKED_MESSAGE) from None

    logger.info("booking_created", booking_id=booking.id, event_id=event.id, client_id=client.id)

    booking = Booking.objects.select_related(
        "client",
        "event__provider__user",
        "event__provider__department__organization",
    ).get(pk=booking.pk)
    notify_booking_confirmed(booking)
    return booking


def cancel_booking(user: User, booking_id: int) -> None:
    """
    Cancel the caller's booking and make the event available again.

    Raises:
        NotFound: Booking does not exist
        Forbidden: Caller did not make the booking
    """
    with transaction.atomic():
        try:
            booking = (
                Booking.objects.select_for_update()
                .select_related("event", "client")
                .get(pk=booking_id)
            )
        except Booking.DoesNotExist:
            raise NotFound("Booking not found") from None

        if booking.client_id != user.id:
            raise Forbidden("Forbidden - Only the booking owner can cancel")

        event = booking.event
        client = booking.client
        booking.delete()
        Event.objects.filter(pk=event.pk).update(is_booked=False, updated_at=timezone.now())

    logger.info("booking_cancelled", booking_id=booking_id, event_id=event.id, client_id=user.id)

    event = Event.objects.select_related("provider__user").get(pk=event.pk)
    notify_booking_cancelled(event, client)


def get_booking(user: User, booking_id: int) -> Booking:
    """
    Fetch a booking visible to the caller (the client or the event's provider).
    """
    try:
        booking = Booking.objects.select_related(
            "client", "event__provider__user", "event__provider__department"
        ).get(pk=booking_id)
    except Booking.DoesNotExist:
        raise NotFound("Booking not found") from None

    if booking.client_id != user.id and booking.event.provider.user_id != user.id:
        raise Forbidden("Forbidden - Not allowed to view this booking")
    return booking


def list_bookings(
    user: User,
    provider_id: int | None = None,
    organization_id: int | None = None,
) -> list[Booking]:
    """
    List bookings, newest first.

    - provider_id: bookings for that provider's events; caller must own it
    - organization_id: every booking in the organization; caller must be an owner
    - neither: the caller's own bookings
    """
    queryset = Booking.objects.select_related(
        "client", "event__provider__user", "event__provider__department"
    )

    if provider_id:
        try:
            provider = Provider.objects.get(pk=provider_id)
        except Provider.DoesNotExist:
            raise NotFound("Provider not found") from None
        require_provider_owner(user, provider)
        queryset = queryset.filter(event__provider=provider)
    elif organization_id:
        require_role(user, organization_id, User.Role.OWNER)
        queryset = queryset.filter(event__provider__department__organization_id=organization_id)
    else:
        queryset = queryset.filter(client=user)

    return list(queryset.order_by("-created_at"))
