"""
Tests for provider services.
"""

import pytest

from apps.accounts.models import User
from apps.core.exceptions import Conflict, Forbidden, NotFound, ValidationError
from apps.organizations.models import Member
from apps.scheduling.models import Event, Provider
from apps.scheduling.providers import (
    assign_provider,
    get_provider_with_upcoming_events,
    list_providers,
    remove_provider,
)
from tests.accounts.factories import AdminUserFactory, UserFactory
from tests.organizations.factories import DepartmentFactory
from tests.scheduling.factories import EventFactory, ProviderFactory, days_from_now_at


@pytest.mark.django_db
class TestAssignProvider:
    def test_owner_assigns_client(self, clinic):
        target = UserFactory.create(role=User.Role.CLIENT)

        provider = assign_provider(
            clinic.owner,
            clinic.organization.id,
            clinic.department.id,
            target.id,
            specialization="Dermatology",
        )

        target.refresh_from_db()
        assert provider.department == clinic.department
        assert target.role == User.Role.PROVIDER
        assert Member.objects.filter(user=target, organization=clinic.organization).exists()

    def test_non_owner_forbidden(self, clinic):
        target = UserFactory.create()

        with pytest.raises(Forbidden, match="Owner access required"):
            assign_provider(
                clinic.provider_user, clinic.organization.id, clinic.department.id, target.id
            )

    def test_disabled_organization_forbidden(self, clinic):
        clinic.organization.enabled = False
        clinic.organization.save()

        target = UserFactory.create()

        with pytest.raises(Forbidden, match="not enabled"):
            assign_provider(clinic.owner, clinic.organization.id, clinic.department.id, target.id)

    def test_department_from_other_organization(self, clinic):
        foreign = DepartmentFactory.create()

        with pytest.raises(ValidationError, match="does not belong"):
            assign_provider(
                clinic.owner, clinic.organization.id, foreign.id, UserFactory.create().id
            )

    def test_missing_department_and_user(self, clinic):
        with pytest.raises(NotFound, match="Department not found"):
            assign_provider(clinic.owner, clinic.organization.id, 999999, clinic.owner.id)
        with pytest.raises(NotFound, match="User not found"):
            assign_provider(clinic.owner, clinic.organization.id, clinic.department.id, 999999)

    @pytest.mark.parametrize("role", [User.Role.ADMIN, User.Role.OWNER])
    def test_privileged_roles_rejected(self, clinic, role):
        target = UserFactory.create(role=role)

        with pytest.raises(Conflict, match=f"role {role}"):
            assign_provider(clinic.owner, clinic.organization.id, clinic.department.id, target.id)

    def test_existing_provider_rejected(self, clinic):
        with pytest.raises(Conflict, match="already a provider"):
            assign_provider(
                clinic.owner, clinic.organization.id, clinic.department.id, clinic.provider_user.id
            )

    def test_admin_is_not_an_owner(self, clinic):
        with pytest.raises(Forbidden):
            assign_provider(
                AdminUserFactory.create(),
                clinic.organization.id,
                clinic.department.id,
                UserFactory.create().id,
            )


@pytest.mark.django_db
class TestProviderQueries:
    def test_list_scoped_to_organization(self, clinic):
        other_department = DepartmentFactory.create(organization=clinic.organization)
        second = ProviderFactory.create(department=other_department)
        ProviderFactory.create()

        assert {p.id for p in list_providers(clinic.organization.id)} == {
            clinic.provider.id,
            second.id,
        }
        assert list_providers(clinic.organization.id, clinic.department.id) == [clinic.provider]

    def test_upcoming_events_prefetched(self, clinic):
        past = EventFactory.create(
            provider=clinic.provider, start=days_from_now_at(-2, 9), end=days_from_now_at(-2, 10)
        )
        soon = EventFactory.create(provider=clinic.provider, start=days_from_now_at(1, 9))
        later = EventFactory.create(provider=clinic.provider, start=days_from_now_at(3, 9))

        provider = get_provider_with_upcoming_events(clinic.provider.id)

        assert provider.upcoming_events == [soon, later]
        assert past not in provider.upcoming_events

    def test_missing_provider(self):
        with pytest.raises(NotFound, match="Provider not found"):
            get_provider_with_upcoming_events(999999)


@pytest.mark.django_db
class TestRemoveProvider:
    def test_owner_removes_provider_and_events(self, clinic):
        event = EventFactory.create(provider=clinic.provider)

        remove_provider(clinic.owner, clinic.provider.id)

        assert not Provider.objects.filter(pk=clinic.provider.id).exists()
        assert not Event.objects.filter(pk=event.id).exists()
        assert Member.objects.filter(user=clinic.provider_user).exists()

    def test_provider_cannot_remove_self(self, clinic):
        with pytest.raises(Forbidden):
            remove_provider(clinic.provider_user, clinic.provider.id)
