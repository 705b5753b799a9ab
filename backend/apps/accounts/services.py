"""
Account services - user provisioning and API key lifecycle.
"""

import hashlib
import secrets
from datetime import timedelta

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.accounts.models import ApiKey, User
from apps.core.exceptions import Conflict, NotFound, ValidationError
from apps.core.logging import get_logger
from apps.notifications.services import notify_user_created

logger = get_logger(__name__)

API_KEY_PREFIX = "msk_"
API_KEY_DISPLAY_CHARS = 12


def hash_api_key(raw_key: str) -> str:
    """SHA-256 hex digest used to store and look up keys."""
    return hashlib.sha256(raw_key.encode()).hexdigest()


def create_user(name: str, email: str, role: str = User.Role.CLIENT) -> User:
    """
    Create a platform user.

    Raises:
        ValidationError: Missing name/email or unknown role
        Conflict: A user with this email already exists
    """
    if not name or not email:
        raise ValidationError("Name and email are required")
    if role not in User.Role.values:
        raise ValidationError(f"Unknown role {role!r}")

    email = User.objects.normalize_email(email)
    if User.objects.filter(email__iexact=email).exists():
        raise Conflict("User with this email already exists")

    try:
        with transaction.atomic():
            user = User.objects.create_user(email=email, name=name, role=role)
    except IntegrityError:
        raise Conflict("User with this email already exists") from None

    logger.info("user_created", user_id=user.id, role=user.role)
    notify_user_created(user)
    return user


def get_or_create_user_by_email(email: str, name: str = "") -> tuple[User, bool]:
    """
    Find a user by email or create a CLIENT user.

    Call inside transaction.atomic(); uses select_for_update for explicit
    row locking under concurrent requests.
    """
    email = User.objects.normalize_email(email)
    try:
        return User.objects.select_for_update().get(email__iexact=email), False
    except User.DoesNotExist:
        try:
            with transaction.atomic():
                return User.objects.create_user(email=email, name=name), True
        except IntegrityError:
            # Concurrent insert won the race, fetch the winner
            return User.objects.get(email__iexact=email), False


def generate_api_key(
    user: User,
    name: str,
    organization=None,
    expires_in_days: int | None = None,
) -> tuple[ApiKey, str]:
    """
    Issue a new API key for a user.

    Returns:
        Tuple of (ApiKey, raw_key). The raw key is not stored and cannot
        be recovered later.
    """
    if not name:
        raise ValidationError("Name is required")
    if expires_in_days is not None and expires_in_days < 1:
        raise ValidationError("expires_in_days must be a positive number of days")

    raw_key = f"{API_KEY_PREFIX}{secrets.token_urlsafe(32)}"
    expires_at = (
        timezone.now() + timedelta(days=expires_in_days) if expires_in_days is not None else None
    )

    api_key = ApiKey.objects.create(
        user=user,
        organization=organization,
        name=name,
        prefix=raw_key[:API_KEY_DISPLAY_CHARS],
        key_hash=hash_api_key(raw_key),
        expires_at=expires_at,
    )

    logger.info(
        "api_key_generated",
        api_key_id=api_key.id,
        user_id=user.id,
        expires_at=expires_at.isoformat() if expires_at else None,
    )
    return api_key, raw_key


def authenticate_api_key(raw_key: str) -> ApiKey | None:
    """
    Resolve a raw bearer key to an ApiKey.

    Returns None for unknown or expired keys and for inactive users.
    """
    try:
        api_key = ApiKey.objects.select_related("user").get(key_hash=hash_api_key(raw_key))
    except ApiKey.DoesNotExist:
        return None

    if api_key.is_expired:
        logger.info("api_key_expired", api_key_id=api_key.id)
        return None
    if not api_key.user.is_active:
        return None

    now = timezone.now()
    ApiKey.objects.filter(pk=api_key.pk).update(last_used_at=now)
    api_key.last_used_at = now
    return api_key


def list_api_keys() -> list[ApiKey]:
    return list(ApiKey.objects.select_related("user", "organization"))


def revoke_api_key(api_key_id: int) -> None:
    """Delete an API key. Raises NotFound if it does not exist."""
    deleted, _ = ApiKey.objects.filter(pk=api_key_id).delete()
    if not deleted:
        raise NotFound("API key not found")
    logger.info("api_key_revoked", api_key_id=api_key_id)


def get_user(user_id: int) -> User:
    try:
        return User.objects.get(pk=user_id)
    except User.DoesNotExist:
        raise NotFound("User not found") from None


def list_users(role: str | None = None) -> list[User]:
    queryset = User.objects.all()
    if role:
        queryset = queryset.filter(role=role)
    return list(queryset)
