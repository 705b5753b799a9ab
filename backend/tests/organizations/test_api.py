"""
Tests for organization and department API endpoints.
"""

import json

import pytest

from apps.accounts.models import User
from apps.organizations.models import Organization
from tests.accounts.factories import UserFactory
from tests.organizations.factories import MemberFactory, OrganizationFactory


@pytest.mark.django_db
class TestPublicOrganizations:
    def test_lists_without_auth(self, api_client):
        OrganizationFactory.create(name="Bright Dental", slug="bright-dental", enabled=False)

        response = api_client.get("/api/v1/organizations")

        assert response.status_code == 200
        [org] = response.json()["organizations"]
        assert org["slug"] == "bright-dental"
        assert set(org) == {"id", "name", "slug", "logo"}


@pytest.mark.django_db
class TestAdminOrganizations:
    def test_create(self, api_client, auth_headers, admin_user):
        owner = UserFactory.create()

        response = api_client.post(
            "/api/v1/admin/organizations",
            data=json.dumps({"name": "Lakeside", "slug": "lakeside", "owner_id": owner.id}),
            content_type="application/json",
            **auth_headers(admin_user),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["organization"]["enabled"] is False
        assert data["message"] == "Organization created. Owner notified to complete subscription."

    def test_create_rejects_bad_slug(self, api_client, auth_headers, admin_user):
        response = api_client.post(
            "/api/v1/admin/organizations",
            data=json.dumps({"name": "Bad", "slug": "Not A Slug", "owner_id": admin_user.id}),
            content_type="application/json",
            **auth_headers(admin_user),
        )

        assert response.status_code == 422

    def test_create_duplicate_slug_is_409(self, api_client, auth_headers, admin_user):
        OrganizationFactory.create(slug="dup")

        response = api_client.post(
            "/api/v1/admin/organizations",
            data=json.dumps({"name": "Dup", "slug": "dup", "owner_id": admin_user.id}),
            content_type="application/json",
            **auth_headers(admin_user),
        )

        assert response.status_code == 409
        assert response.json() == {"detail": "Organization with this slug already exists"}

    def test_owner_cannot_use_admin_routes(self, api_client, auth_headers):
        owner = UserFactory.create(role=User.Role.OWNER)

        response = api_client.get("/api/v1/admin/organizations", **auth_headers(owner))

        assert response.status_code == 403

    def test_toggle(self, api_client, auth_headers, admin_user):
        org = OrganizationFactory.create(enabled=False)

        response = api_client.post(
            f"/api/v1/admin/organizations/{org.id}/toggle",
            data=json.dumps({"enabled": True}),
            content_type="application/json",
            **auth_headers(admin_user),
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Organization enabled successfully"
        assert Organization.objects.get(pk=org.id).enabled is True

    def test_delete(self, api_client, auth_headers, admin_user):
        org = OrganizationFactory.create()

        response = api_client.delete(
            f"/api/v1/admin/organizations/{org.id}", **auth_headers(admin_user)
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert not Organization.objects.filter(pk=org.id).exists()

    def test_list_and_overview(self, api_client, auth_headers, admin_user, clinic):
        headers = auth_headers(admin_user)

        listed = api_client.get("/api/v1/admin/organizations", **headers).json()
        overview = api_client.get("/api/v1/admin/overview", **headers).json()

        assert listed["organizations"][0]["member_count"] == 2
        assert overview["organizations"] == 1
        assert overview["providers"] == 1


@pytest.mark.django_db
class TestSubscriptionStatus:
    def test_member_sees_status(self, api_client, auth_headers):
        org = OrganizationFactory.create(enabled=False, metadata={"customer_id": "cus_1"})
        member = UserFactory.create(role=User.Role.OWNER)
        MemberFactory.create(user=member, organization=org)

        response = api_client.get(
            f"/api/v1/organizations/{org.id}/subscription", **auth_headers(member)
        )

        assert response.status_code == 200
        assert response.json() == {
            "enabled": False,
            "subscription_active": False,
            "metadata": {"customer_id": "cus_1"},
            "needs_subscription": True,
        }

    def test_non_member_forbidden(self, api_client, auth_headers, client_user):
        org = OrganizationFactory.create()

        response = api_client.get(
            f"/api/v1/organizations/{org.id}/subscription", **auth_headers(client_user)
        )

        assert response.status_code == 403


@pytest.mark.django_db
class TestDepartments:
    def test_owner_creates_department(self, api_client, auth_headers, clinic):
        response = api_client.post(
            "/api/v1/departments",
            data=json.dumps({"organization_id": clinic.organization.id, "name": "Cardiology"}),
            content_type="application/json",
            **auth_headers(clinic.owner),
        )

        assert response.status_code == 201
        assert response.json()["name"] == "Cardiology"

    def test_disabled_organization_is_403(self, api_client, auth_headers, clinic):
        clinic.organization.enabled = False
        clinic.organization.save()

        response = api_client.post(
            "/api/v1/departments",
            data=json.dumps({"organization_id": clinic.organization.id, "name": "Cardiology"}),
            content_type="application/json",
            **auth_headers(clinic.owner),
        )

        assert response.status_code == 403
        assert "not enabled" in response.json()["detail"]

    def test_list_with_providers(self, api_client, auth_headers, clinic, client_user):
        response = api_client.get(
            f"/api/v1/departments?organization_id={clinic.organization.id}",
            **auth_headers(client_user),
        )

        [department] = response.json()["departments"]
        assert department["providers"][0]["id"] == clinic.provider.id

    def test_owner_deletes_department(self, api_client, auth_headers, clinic):
        response = api_client.delete(
            f"/api/v1/departments/{clinic.department.id}", **auth_headers(clinic.owner)
        )

        assert response.status_code == 200
