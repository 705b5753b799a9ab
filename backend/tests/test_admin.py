"""
Tests for the Django admin registrations.
"""

import pytest
from django.contrib import admin
from django.test import Client

from apps.accounts.models import ApiKey, User
from apps.billing.models import Product, Subscription
from apps.organizations.models import Department, Organization
from apps.scheduling.models import Booking, Event, Provider
from tests.accounts.factories import AdminUserFactory, ApiKeyFactory
from tests.billing.factories import PaymentFactory, SubscriptionFactory
from tests.scheduling.factories import BookingFactory


@pytest.fixture
def staff_client(db) -> Client:
    client = Client()
    client.force_login(AdminUserFactory.create(is_superuser=True))
    return client


@pytest.mark.parametrize(
    "model",
    [User, ApiKey, Organization, Department, Provider, Event, Booking, Product, Subscription],
)
def test_model_registered(model):
    assert admin.site.is_registered(model)


@pytest.mark.django_db
class TestAdminPages:
    @pytest.mark.parametrize(
        "path",
        [
            "/admin/accounts/user/",
            "/admin/accounts/apikey/",
            "/admin/organizations/organization/",
            "/admin/organizations/department/",
            "/admin/scheduling/provider/",
            "/admin/scheduling/event/",
            "/admin/scheduling/booking/",
            "/admin/billing/product/",
            "/admin/billing/subscription/",
        ],
    )
    def test_changelist_renders(self, staff_client, clinic, path):
        BookingFactory.create(event__provider=clinic.provider)
        subscription = SubscriptionFactory.create(organization=clinic.organization)
        PaymentFactory.create(subscription=subscription)
        ApiKeyFactory.create(user=clinic.owner)

        assert staff_client.get(path).status_code == 200

    def test_event_booking_state_is_read_only(self, staff_client, clinic):
        booking = BookingFactory.create(event__provider=clinic.provider)

        response = staff_client.get(f"/admin/scheduling/event/{booking.event_id}/change/")

        assert response.status_code == 200
        assert b'name="is_booked"' not in response.content
        assert b'name="title"' in response.content

    def test_organization_page_lists_members(self, staff_client, clinic):
        response = staff_client.get(
            f"/admin/organizations/organization/{clinic.organization.id}/change/"
        )

        assert response.status_code == 200
        assert b"members-TOTAL_FORMS" in response.content

    def test_non_staff_user_redirected_to_login(self, client_user):
        client = Client()
        client.force_login(client_user)

        response = client.get("/admin/scheduling/event/")

        assert response.status_code == 302
        assert "/admin/login/" in response["Location"]
