"""
Tests for account services.
"""

from unittest.mock import patch

import pytest

from apps.accounts.models import ApiKey, User
from apps.accounts.services import (
    API_KEY_PREFIX,
    authenticate_api_key,
    create_user,
    generate_api_key,
    get_or_create_user_by_email,
    get_user,
    hash_api_key,
    list_users,
    revoke_api_key,
)
from apps.core.exceptions import Conflict, NotFound, ValidationError
from tests.accounts.factories import UserFactory
from tests.organizations.factories import OrganizationFactory


@pytest.mark.django_db
class TestCreateUser:
    @patch("apps.accounts.services.notify_user_created")
    def test_creates_user_and_sends_welcome(self, mock_notify):
        user = create_user(name="Dana Scully", email="dana@clinic.example", role=User.Role.OWNER)

        assert user.role == User.Role.OWNER
        assert user.has_usable_password() is False
        mock_notify.assert_called_once_with(user)

    def test_defaults_to_client(self):
        user = create_user(name="Pat", email="pat@example.com")

        assert user.role == User.Role.CLIENT

    def test_duplicate_email_is_case_insensitive(self):
        UserFactory.create(email="taken@example.com")

        with pytest.raises(Conflict, match="already exists"):
            create_user(name="Other", email="TAKEN@example.com")

    def test_missing_fields_rejected(self):
        with pytest.raises(ValidationError):
            create_user(name="", email="x@example.com")

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError, match="Unknown role"):
            create_user(name="X", email="x@example.com", role="SUPERHERO")


@pytest.mark.django_db
class TestGetOrCreateUserByEmail:
    def test_returns_existing_user(self):
        existing = UserFactory.create(email="known@example.com")

        user, created = get_or_create_user_by_email("Known@example.com")

        assert created is False
        assert user == existing

    def test_creates_client_for_new_email(self):
        user, created = get_or_create_user_by_email("new@example.com", name="New")

        assert created is True
        assert user.role == User.Role.CLIENT
        assert user.name == "New"


@pytest.mark.django_db
class TestApiKeys:
    def test_generate_stores_only_hash(self):
        user = UserFactory.create()

        api_key, raw_key = generate_api_key(user, name="Front desk")

        assert raw_key.startswith(API_KEY_PREFIX)
        assert api_key.key_hash == hash_api_key(raw_key)
        assert api_key.prefix == raw_key[:12]
        assert raw_key not in {api_key.key_hash, api_key.prefix}
        assert api_key.expires_at is None

    def test_generate_with_expiry_and_organization(self):
        user = UserFactory.create()
        org = OrganizationFactory.create()

        api_key, _ = generate_api_key(user, name="Temp", organization=org, expires_in_days=7)

        assert api_key.organization == org
        assert api_key.expires_at is not None

    def test_generate_rejects_bad_expiry(self):
        with pytest.raises(ValidationError):
            generate_api_key(UserFactory.create(), name="Bad", expires_in_days=0)

    def test_authenticate_round_trip(self):
        user = UserFactory.create()
        _, raw_key = generate_api_key(user, name="k")

        api_key = authenticate_api_key(raw_key)

        assert api_key is not None
        assert api_key.user == user
        assert api_key.last_used_at is not None

    def test_authenticate_unknown_key(self):
        assert authenticate_api_key("msk_unknown") is None

    def test_revoke_deletes_key(self):
        api_key, raw_key = generate_api_key(UserFactory.create(), name="k")

        revoke_api_key(api_key.id)

        assert not ApiKey.objects.filter(pk=api_key.id).exists()
        assert authenticate_api_key(raw_key) is None

    def test_revoke_missing_key(self):
        with pytest.raises(NotFound, match="API key not found"):
            revoke_api_key(999999)


@pytest.mark.django_db
class TestUserLookup:
    def test_get_user_not_found(self):
        with pytest.raises(NotFound, match="User not found"):
            get_user(999999)

    def test_list_users_filters_by_role(self):
        provider = UserFactory.create(role=User.Role.PROVIDER)
        UserFactory.create(role=User.Role.CLIENT)

        assert list_users(User.Role.PROVIDER) == [provider]
        assert len(list_users()) == 2
