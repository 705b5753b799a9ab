"""
Shared pytest fixtures for all tests.

This module provides common fixtures used across multiple test modules.
Individual test modules can override these fixtures if needed.

Factories
---------
Import factories directly from their modules:

    from tests.accounts.factories import UserFactory, AdminUserFactory
    from tests.organizations.factories import OrganizationFactory, MemberFactory
    from tests.scheduling.factories import ProviderFactory, EventFactory, BookingFactory
    from tests.billing.factories import SubscriptionFactory

Example usage:

    @pytest.mark.django_db
    def test_something():
        org = OrganizationFactory.create(enabled=False)
        owner = UserFactory.create(role=User.Role.OWNER)
        MemberFactory.create(user=owner, organization=org)
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast

import pytest
from django.test import Client, RequestFactory
from django.test.client import WSGIRequest  # type: ignore[attr-defined]

from apps.accounts.models import User
from apps.core.auth import AuthContext
from apps.core.types import AuthenticatedHttpRequest


def make_request_with_auth(request: "WSGIRequest", auth: AuthContext) -> AuthenticatedHttpRequest:
    """
    Set auth on a request and return it typed as AuthenticatedHttpRequest.

    Example:
        request = request_factory.get("/api/v1/auth/me")
        request = make_request_with_auth(request, AuthContext(user=user))
    """
    request.auth = auth  # type: ignore[attr-defined]
    return cast(AuthenticatedHttpRequest, request)


@pytest.fixture
def request_factory() -> RequestFactory:
    """
    Django request factory for unit testing views.

    Use this when you need to call Django Ninja endpoint functions directly
    without going through the full HTTP stack.
    """
    return RequestFactory()


@pytest.fixture
def api_client() -> Client:
    """
    Django test client for full HTTP request/response cycle tests.

    Example:
        def test_api_returns_200(api_client):
            response = api_client.get("/api/v1/health")
            assert response.status_code == 200
    """
    return Client()


@pytest.fixture
def auth_headers(db) -> Callable[[User], dict[str, str]]:
    """
    Factory fixture returning Authorization headers for a user.

    Issues a real API key, so requests go through ApiKeyAuth.

    Example:
        def test_me(api_client, auth_headers):
            user = UserFactory.create()
            response = api_client.get("/api/v1/auth/me", **auth_headers(user))
    """
    from apps.accounts.services import generate_api_key

    def _headers(user: User) -> dict[str, str]:
        _, raw_key = generate_api_key(user, name="test")
        return {"HTTP_AUTHORIZATION": f"Bearer {raw_key}"}

    return _headers


@pytest.fixture
def admin_user(db) -> User:
    """A platform administrator."""
    from tests.accounts.factories import AdminUserFactory

    return AdminUserFactory.create()


@pytest.fixture
def client_user(db) -> User:
    """A plain CLIENT user with no memberships."""
    from tests.accounts.factories import UserFactory

    return UserFactory.create(role=User.Role.CLIENT)


@dataclass
class Clinic:
    """An enabled organization with an owner, a department and one provider."""

    organization: Any
    owner: User
    department: Any
    provider: Any

    @property
    def provider_user(self) -> User:
        return self.provider.user


@pytest.fixture
def clinic(db) -> Clinic:
    """
    Enabled organization wired up the way the API would build it.

    Example:
        def test_owner_action(clinic):
            create_department(clinic.owner, clinic.organization.id, "Radiology")
    """
    from tests.accounts.factories import UserFactory
    from tests.organizations.factories import (
        DepartmentFactory,
        MemberFactory,
        OrganizationFactory,
    )
    from tests.scheduling.factories import ProviderFactory

    organization = OrganizationFactory.create(enabled=True)
    owner = UserFactory.create(role=User.Role.OWNER)
    MemberFactory.create(user=owner, organization=organization)

    department = DepartmentFactory.create(organization=organization)
    provider = ProviderFactory.create(department=department)
    MemberFactory.create(user=provider.user, organization=organization)

    return Clinic(organization=organization, owner=owner, department=department, provider=provider)
