"""
Tests for booking services.
"""

import threading
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db import connection
from django.utils import timezone

from apps.accounts.models import User
from apps.core.exceptions import Conflict, Forbidden, NotFound, ValidationError
from apps.scheduling.booking import (
    ALREADY_BOOKED_MESSAGE,
    cancel_booking,
    create_booking,
    get_booking,
    list_bookings,
)
from apps.scheduling.models import Booking, Event
from tests.accounts.factories import UserFactory
from tests.organizations.factories import MemberFactory
from tests.scheduling.factories import BookingFactory, EventFactory, days_from_now_at


@pytest.mark.django_db
class TestCreateBooking:
    @patch("apps.scheduling.booking.notify_booking_confirmed")
    def test_books_available_event(self, mock_notify, clinic, client_user):
        event = EventFactory.create(provider=clinic.provider)

        booking = create_booking(client_user, event.id)

        event.refresh_from_db()
        assert event.is_booked is True
        assert booking.client == client_user
        assert booking.status == Booking.Status.CONFIRMED
        mock_notify.assert_called_once_with(booking)

    def test_second_client_gets_conflict(self, clinic):
        event = EventFactory.create(provider=clinic.provider)
        first, second = UserFactory.create_batch(2)

        create_booking(first, event.id)
        with pytest.raises(Conflict, match=ALREADY_BOOKED_MESSAGE):
            create_booking(second, event.id)

        assert Booking.objects.filter(event=event).count() == 1
        assert Booking.objects.get(event=event).client == first

    def test_past_event_rejected(self, clinic, client_user):
        event = EventFactory.create(
            provider=clinic.provider,
            start=timezone.now() - timedelta(hours=2),
            end=timezone.now() - timedelta(hours=1),
        )

        with pytest.raises(ValidationError, match="Cannot book past events"):
            create_booking(client_user, event.id)

        assert Event.objects.get(pk=event.id).is_booked is False

    def test_booked_check_precedes_past_check(self, client_user):
        event = EventFactory.create(
            start=timezone.now() - timedelta(hours=2),
            end=timezone.now() - timedelta(hours=1),
            is_booked=True,
        )

        with pytest.raises(Conflict):
            create_booking(client_user, event.id)

    def test_missing_event(self, client_user):
        with pytest.raises(NotFound, match="Event not found"):
            create_booking(client_user, 999999)

    @patch("apps.scheduling.booking.notify_booking_confirmed")
    def test_losing_the_claim_is_a_conflict(self, mock_notify, clinic, client_user):
        """A concurrent booker flipped is_booked between our read and our update."""
        event = EventFactory.create(provider=clinic.provider)

        with patch.object(Event.objects, "filter") as mock_filter:
            mock_filter.return_value.update.return_value = 0
            with pytest.raises(Conflict, match=ALREADY_BOOKED_MESSAGE):
                create_booking(client_user, event.id)

        assert not Booking.objects.exists()
        mock_notify.assert_not_called()

    def test_unique_booking_violation_rolls_back_claim(self, clinic, client_user):
        """A stray booking row without the flag set still blocks a second booking."""
        event = EventFactory.create(provider=clinic.provider)
        BookingFactory.create(event=event)
        assert Event.objects.get(pk=event.id).is_booked is False

        with pytest.raises(Conflict, match=ALREADY_BOOKED_MESSAGE):
            create_booking(client_user, event.id)

        assert Event.objects.get(pk=event.id).is_booked is False
        assert Booking.objects.filter(event=event).count() == 1

    def test_booking_does_not_require_membership(self, clinic):
        outsider = UserFactory.create(role=User.Role.CLIENT)
        event = EventFactory.create(provider=clinic.provider, start=days_from_now_at(2, 9))

        booking = create_booking(outsider, event.id)

        assert booking.event_id == event.id


@pytest.mark.django_db(transaction=True)
class TestConcurrentBooking:
    """Clients booking the same event from separate threads and connections."""

    def _race(self, clients, event_id) -> list:
        barrier = threading.Barrier(len(clients))
        outcomes = []

        def book(client):
            try:
                barrier.wait(timeout=10)
                outcomes.append(create_booking(client, event_id))
            except Exception as exc:
                outcomes.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=book, args=(client,)) for client in clients]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)
        return outcomes

    def test_exactly_one_racing_client_wins(self, clinic):
        event = EventFactory.create(provider=clinic.provider)
        clients = UserFactory.create_batch(4)

        outcomes = self._race(clients, event.id)

        won = [o for o in outcomes if isinstance(o, Booking)]
        lost = [o for o in outcomes if isinstance(o, Conflict)]
        assert len(won) == 1
        assert len(lost) == 3
        assert all(exc.message == ALREADY_BOOKED_MESSAGE for exc in lost)
        assert Booking.objects.filter(event=event).count() == 1
        assert Booking.objects.get(event=event).client_id == won[0].client_id
        assert Event.objects.get(pk=event.id).is_booked is True

    def test_race_after_cancellation_rebooks_once(self, clinic):
        booking = BookingFactory.create(event__provider=clinic.provider)
        cancel_booking(booking.client, booking.id)
        clients = UserFactory.create_batch(2)

        outcomes = self._race(clients, booking.event_id)

        assert sum(isinstance(o, Booking) for o in outcomes) == 1
        assert sum(isinstance(o, Conflict) for o in outcomes) == 1
        assert Booking.objects.filter(event_id=booking.event_id).count() == 1
        assert Event.objects.get(pk=booking.event_id).is_booked is True


@pytest.mark.django_db
class TestCancelBooking:
    @patch("apps.scheduling.booking.notify_booking_cancelled")
    def test_client_cancels_and_event_reopens(self, mock_notify, client_user):
        booking = BookingFactory.create(client=client_user)
        event_id = booking.event_id

        cancel_booking(client_user, booking.id)

        assert not Booking.objects.filter(pk=booking.id).exists()
        event = Event.objects.get(pk=event_id)
        assert event.is_booked is False
        mock_notify.assert_called_once()
        notified_event, notified_client = mock_notify.call_args.args
        assert notified_event.id == event_id
        assert notified_client == client_user

    def test_cancelled_event_can_be_rebooked(self, client_user):
        booking = BookingFactory.create(client=client_user)
        event_id = booking.event_id
        cancel_booking(client_user, booking.id)

        rebooked = create_booking(UserFactory.create(), event_id)

        assert rebooked.event_id == event_id

    def test_only_booker_can_cancel(self):
        booking = BookingFactory.create()

        with pytest.raises(Forbidden, match="Only the booking owner can cancel"):
            cancel_booking(booking.event.provider.user, booking.id)

        assert Event.objects.get(pk=booking.event_id).is_booked is True

    def test_missing_booking(self, client_user):
        with pytest.raises(NotFound, match="Booking not found"):
            cancel_booking(client_user, 999999)


@pytest.mark.django_db
class TestReadBookings:
    def test_client_and_provider_can_view(self, client_user):
        booking = BookingFactory.create(client=client_user)

        assert get_booking(client_user, booking.id) == booking
        assert get_booking(booking.event.provider.user, booking.id) == booking

    def test_stranger_cannot_view(self):
        booking = BookingFactory.create()

        with pytest.raises(Forbidden):
            get_booking(UserFactory.create(), booking.id)

    def test_list_own_bookings(self, client_user):
        mine = BookingFactory.create(client=client_user)
        BookingFactory.create()

        assert list_bookings(client_user) == [mine]

    def test_list_by_provider_requires_ownership(self, clinic):
        booking = BookingFactory.create(event__provider=clinic.provider)

        assert list_bookings(clinic.provider_user, provider_id=clinic.provider.id) == [booking]
        with pytest.raises(Forbidden):
            list_bookings(clinic.owner, provider_id=clinic.provider.id)

    def test_list_by_organization_requires_owner(self, clinic, client_user):
        booking = BookingFactory.create(event__provider=clinic.provider)
        BookingFactory.create()
        MemberFactory.create(user=client_user, organization=clinic.organization)

        assert list_bookings(clinic.owner, organization_id=clinic.organization.id) == [booking]
        with pytest.raises(Forbidden):
            list_bookings(client_user, organization_id=clinic.organization.id)
