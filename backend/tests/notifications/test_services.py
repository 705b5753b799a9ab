"""
Tests for notification services.
"""

from unittest.mock import patch

import pytest

from apps.notifications.services import (
    notify_booking_cancelled,
    notify_booking_confirmed,
    notify_organization_created,
    notify_subscription_activated,
    notify_user_created,
    send_email,
)
from config.settings.base import settings
from tests.accounts.factories import UserFactory
from tests.organizations.factories import OrganizationFactory
from tests.scheduling.factories import BookingFactory, EventFactory

SEND = "apps.notifications.services.resend.Emails.send"


@pytest.fixture
def email_enabled(monkeypatch):
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")
    monkeypatch.setattr(settings, "RESEND_FROM_EMAIL", "noreply@medisched.test")


class TestSendEmail:
    def test_skipped_without_api_key(self):
        with patch(SEND) as mock_send:
            assert send_email("a@example.com", "Hi", "user_created", {"user": None}) is False

        mock_send.assert_not_called()

    @pytest.mark.django_db
    def test_sends_rendered_html(self, email_enabled):
        user = UserFactory.create(name="Sam")

        with patch(SEND, return_value={"id": "email_1"}) as mock_send:
            assert notify_user_created(user) is True

        params = mock_send.call_args.args[0]
        assert params["to"] == [user.email]
        assert params["from"] == "noreply@medisched.test"
        assert params["subject"] == "Welcome to Medisched - Your Account Created"
        assert "Sam" in params["html"]

    @pytest.mark.django_db
    def test_provider_failure_is_swallowed(self, email_enabled):
        user = UserFactory.create()

        with patch(SEND, side_effect=RuntimeError("provider down")):
            assert notify_user_created(user) is False


@pytest.mark.django_db
class TestNotifications:
    def test_organization_emails_go_to_owner(self, email_enabled):
        org = OrganizationFactory.create(name="Harbor Clinic")
        owner = UserFactory.create()

        with patch(SEND, return_value={"id": "x"}) as mock_send:
            notify_organization_created(org, owner)
            notify_subscription_activated(org, owner)

        subjects = [call.args[0]["subject"] for call in mock_send.call_args_list]
        assert subjects == [
            "Organization Created: Harbor Clinic",
            "Harbor Clinic - Subscription Activated!",
        ]
        assert all(call.args[0]["to"] == [owner.email] for call in mock_send.call_args_list)

    def test_booking_confirmed_emails_client_and_provider(self, email_enabled):
        booking = BookingFactory.create(event__title="Annual check-up")

        with patch(SEND, return_value={"id": "x"}) as mock_send:
            assert notify_booking_confirmed(booking) is True

        recipients = [call.args[0]["to"] for call in mock_send.call_args_list]
        assert recipients == [[booking.client.email], [booking.event.provider.user.email]]
        assert mock_send.call_args_list[1].args[0]["subject"] == "New Appointment: Annual check-up"

    def test_booking_cancelled_emails_provider(self, email_enabled):
        event = EventFactory.create(title="Dental cleaning")
        client = UserFactory.create()

        with patch(SEND, return_value={"id": "x"}) as mock_send:
            assert notify_booking_cancelled(event, client) is True

        params = mock_send.call_args.args[0]
        assert params["to"] == [event.provider.user.email]
        assert params["subject"] == "Appointment Cancelled: Dental cleaning"
