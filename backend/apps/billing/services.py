"""
Billing services - subscription synchronization and checkout.

Webhook handlers are idempotent: subscriptions are keyed by the provider's
checkout ID and payments by the provider's payment ID, so a replayed event
updates rows in place instead of duplicating them.
Emails are sent only after the database transaction has finished.
"""

from typing import Any
from urllib.parse import urlencode

from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from apps.accounts.models import User
from apps.accounts.services import get_or_create_user_by_email
from apps.billing.models import Payment, Product, Subscription
from apps.core.exceptions import ValidationError
from apps.core.logging import get_logger
from apps.notifications.services import notify_subscription_activated
from apps.organizations.models import Organization
from apps.organizations.permissions import require_membership, require_role
from apps.organizations.services import ensure_membership, get_organization, unique_slug
from config.settings.base import settings

logger = get_logger(__name__)


# =============================================================================
# Payload helpers
# =============================================================================


def _metadata(data: dict[str, Any]) -> dict[str, Any]:
    metadata = data.get("metadata")
    return metadata if isinstance(metadata, dict) else {}


def _customer(data: dict[str, Any]) -> dict[str, Any]:
    customer = data.get("customer")
    return customer if isinstance(customer, dict) else {}


def _parse_id(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_timestamp(value: Any):
    if isinstance(value, str):
        return parse_datetime(value)
    return None


def checkout_key(data: dict[str, Any]) -> str:
    """
    Idempotency key for a checkout: ``checkout_id``, falling back to ``id``.
    """
    key = data.get("checkout_id") or data.get("id")
    if not key:
        raise ValueError("Webhook data has neither checkout_id nor id")
    return str(key)


def payment_key(event_type: str, data: dict[str, Any]) -> str | None:
    """
    Idempotency key for the payment an event reports, if it reports one.
    """
    key = data.get("payment_id") or data.get("order_id")
    if not key and event_type == "order.created":
        key = data.get("id")
    return str(key) if key else None


# =============================================================================
# Persistence helpers
# =============================================================================


def get_or_create_product(data: dict[str, Any]) -> Product:
    product_data = data.get("product") if isinstance(data.get("product"), dict) else {}
    external_id = (
        data.get("product_id") or product_data.get("id") or settings.SUBSCRIPTION_PRODUCT_ID
    )
    product, created = Product.objects.get_or_create(
        external_product_id=str(external_id),
        defaults={
            "name": product_data.get("name") or settings.SUBSCRIPTION_PRODUCT_NAME,
            "price_amount": settings.SUBSCRIPTION_PRICE_AMOUNT,
            "currency": settings.SUBSCRIPTION_CURRENCY,
            "interval": Product.Interval.MONTH,
        },
    )
    if created:
        logger.info("product_created", external_product_id=product.external_product_id)
    return product


def upsert_subscription(
    organization: Organization,
    checkout_id: str,
    fields: dict[str, Any],
) -> tuple[Subscription, bool]:
    """
    Create or update the subscription for a checkout.

    Call inside transaction.atomic(). A concurrent insert of the same
    checkout is resolved by re-reading the winner and updating it.
    """
    try:
        subscription = Subscription.objects.select_for_update().get(checkout_id=checkout_id)
    except Subscription.DoesNotExist:
        try:
            with transaction.atomic():
                subscription = Subscription.objects.create(
                    organization=organization,
                    checkout_id=checkout_id,
                    **fields,
                )
                return subscription, True
        except IntegrityError:
            subscription = Subscription.objects.select_for_update().get(checkout_id=checkout_id)

    for name, value in fields.items():
        setattr(subscription, name, value)
    subscription.organization = organization
    subscription.save()
    return subscription, False


def record_payment(
    subscription: Subscription,
    event_type: str,
    data: dict[str, Any],
    product: Product,
) -> Payment | None:
    external_id = payment_key(event_type, data)
    if external_id is None:
        return None

    amount = _parse_id(data.get("amount"))
    if amount is None:
        amount = product.price_amount

    payment, created = Payment.objects.get_or_create(
        external_payment_id=external_id,
        defaults={
            "subscription": subscription,
            "amount": amount,
            "currency": data.get("currency") or product.currency,
            "status": data.get("status") or "succeeded",
        },
    )
    if created:
        logger.info(
            "payment_recorded",
            payment_id=payment.id,
            external_payment_id=external_id,
            subscription_id=subscription.id,
        )
    return payment


def _subscription_fields(
    event_type: str,
    data: dict[str, Any],
    product: Product,
    user: User | None,
) -> dict[str, Any]:
    if event_type == "subscription.created":
        external_subscription_id = str(data.get("id") or "")
    else:
        external_subscription_id = str(data.get("subscription_id") or "")

    fields: dict[str, Any] = {
        "product": product,
        "customer_id": str(_customer(data).get("id") or data.get("customer_id") or ""),
        "status": Subscription.Status.ACTIVE,
        "current_period_start": _parse_timestamp(data.get("current_period_start")),
        "current_period_end": _parse_timestamp(data.get("current_period_end")),
        "canceled_at": None,
    }
    if external_subscription_id:
        fields["external_subscription_id"] = external_subscription_id
    if user is not None:
        fields["user"] = user
    return fields


def find_owner(organization: Organization) -> User | None:
    return User.objects.filter(
        memberships__organization=organization, role=User.Role.OWNER
    ).first()


# =============================================================================
# Webhook handlers
# =============================================================================


def activate_subscription(event_type: str, data: dict[str, Any]) -> Organization | None:
    """
    Enable the organization named in ``metadata.organizationId``.

    Returns the organization, or None if it does not exist.
    """
    metadata = _metadata(data)
    organization_id = _parse_id(metadata.get("organizationId"))
    checkout_id = checkout_key(data)

    with transaction.atomic():
        organization = (
            Organization.objects.select_for_update().filter(pk=organization_id).first()
            if organization_id is not None
            else None
        )
        if organization is None:
            logger.warning(
                "subscription_webhook_unknown_organization",
                organization_id=metadata.get("organizationId"),
                checkout_id=checkout_id,
            )
            return None

        was_enabled = organization.enabled
        user_id = _parse_id(metadata.get("userId"))
        user = User.objects.filter(pk=user_id).first() if user_id is not None else None

        product = get_or_create_product(data)
        subscription, created = upsert_subscription(
            organization,
            checkout_id,
            _subscription_fields(event_type, data, product, user),
        )
        record_payment(subscription, event_type, data, product)

        organization.enabled = True
        organization.metadata = {
            **(organization.metadata or {}),
            "customer_id": subscription.customer_id,
            "subscription_id": subscription.external_subscription_id or checkout_id,
            "subscription_status": "active",
            "subscription_started_at": timezone.now().isoformat(),
        }
        organization.save(update_fields=["enabled", "metadata", "updated_at"])

    logger.info(
        "subscription_activated",
        organization_id=organization.id,
        subscription_id=subscription.id,
        checkout_id=checkout_id,
        created=created,
    )

    if not was_enabled:
        owner = find_owner(organization)
        if owner is not None:
            notify_subscription_activated(organization, owner)
    return organization


def provision_legacy_organization(data: dict[str, Any]) -> Organization:
    """
    Create an enabled organization for a checkout that names none.

    The customer (found or created by email) becomes its OWNER. A replay of
    the same checkout returns the organization created the first time.
    """
    metadata = _metadata(data)
    customer = _customer(data)
    email = customer.get("email")
    if not email:
        raise ValueError("Legacy provisioning needs data.customer.email")

    customer_name = customer.get("name") or ""
    organization_name = metadata.get("organizationName") or (
        f"{customer_name or email}'s Organization"
    )
    checkout_id = checkout_key(data)

    with transaction.atomic():
        existing = (
            Subscription.objects.select_related("organization")
            .filter(checkout_id=checkout_id)
            .first()
        )
        if existing is not None:
            logger.info(
                "legacy_provisioning_replay",
                organization_id=existing.organization_id,
                checkout_id=checkout_id,
            )
            return existing.organization

        user, _ = get_or_create_user_by_email(email, name=customer_name)
        product = get_or_create_product(data)
        fields = _subscription_fields("subscription.created", data, product, user)

        organization = Organization.objects.create(
            name=organization_name,
            slug=unique_slug(organization_name),
            enabled=True,
            metadata={
                "customer_id": fields["customer_id"],
                "subscription_id": fields.get("external_subscription_id", checkout_id),
                "subscription_status": "active",
                "subscription_started_at": timezone.now().isoformat(),
            },
        )
        ensure_membership(organization, user)
        if user.role != User.Role.ADMIN:
            user.role = User.Role.OWNER
            user.save(update_fields=["role", "updated_at"])

        subscription, _ = upsert_subscription(organization, checkout_id, fields)
        record_payment(subscription, "subscription.created", data, product)

    logger.info(
        "legacy_organization_provisioned",
        organization_id=organization.id,
        slug=organization.slug,
        owner_id=user.id,
    )
    return organization


def cancel_subscription(data: dict[str, Any]) -> Organization | None:
    """
    Disable the organization whose subscription was canceled.

    The organization is taken from ``metadata.organizationId`` or, failing
    that, from the subscription matching ``data.id``.
    """
    metadata = _metadata(data)

    with transaction.atomic():
        organization = None
        organization_id = _parse_id(metadata.get("organizationId"))
        if organization_id is not None:
            organization = (
                Organization.objects.select_for_update().filter(pk=organization_id).first()
            )

        if organization is None and data.get("id"):
            subscription = Subscription.objects.filter(
                external_subscription_id=str(data["id"])
            ).first() or Subscription.objects.filter(checkout_id=checkout_key(data)).first()
            if subscription is not None:
                organization = Organization.objects.select_for_update().get(
                    pk=subscription.organization_id
                )

        if organization is None:
            logger.warning(
                "subscription_cancel_unknown_organization",
                organization_id=metadata.get("organizationId"),
                external_subscription_id=data.get("id"),
            )
            return None

        now = timezone.now()
        cancelled = organization.subscriptions.filter(status=Subscription.Status.ACTIVE).update(
            status=Subscription.Status.CANCELLED,
            canceled_at=now,
            updated_at=now,
        )
        organization.enabled = False
        organization.metadata = {
            **(organization.metadata or {}),
            "subscription_status": "canceled",
            "subscription_canceled_at": now.isoformat(),
        }
        organization.save(update_fields=["enabled", "metadata", "updated_at"])

    logger.info(
        "subscription_cancelled",
        organization_id=organization.id,
        cancelled_subscriptions=cancelled,
    )
    return organization


def handle_webhook_event(event: dict[str, Any], *, legacy_provisioning: bool) -> None:
    """
    Dispatch a verified webhook event to its handler.

    Args:
        event: Parsed body with string ``type`` and object ``data``
        legacy_provisioning: Create organizations for checkouts that name none
    """
    event_type = event["type"]
    data = event["data"]

    match event_type:
        case "subscription.created" | "order.created":
            if _metadata(data).get("organizationId"):
                activate_subscription(event_type, data)
            elif event_type == "subscription.created" and legacy_provisioning:
                provision_legacy_organization(data)
            else:
                logger.info(
                    "subscription_webhook_ignored_no_organization",
                    event_type=event_type,
                    legacy_provisioning=legacy_provisioning,
                )

        case "subscription.canceled":
            cancel_subscription(data)

        case _:
            logger.debug("subscription_webhook_unhandled_event", event_type=event_type)


# =============================================================================
# Owner-facing operations
# =============================================================================


def create_checkout(user: User, organization_id: int) -> dict[str, Any]:
    """
    Build the checkout the owner completes with the subscription provider.

    The metadata round-trips through the provider and comes back on the
    webhook, which is how the organization gets enabled.

    Raises:
        Forbidden: Caller is not an owner member
        NotFound: Organization does not exist
        ValidationError: Organization is already enabled
    """
    require_role(user, organization_id, User.Role.OWNER)
    organization = get_organization(organization_id)

    if organization.enabled:
        raise ValidationError("Organization is already subscribed")

    metadata = {
        "organizationId": str(organization.id),
        "organizationName": organization.name,
        "userId": str(user.id),
    }
    query = urlencode(
        {
            "org": organization.slug,
            "product": settings.SUBSCRIPTION_PRODUCT_ID,
            "customer_email": user.email,
        }
    )

    logger.info("checkout_created", organization_id=organization.id, user_id=user.id)
    return {
        "checkout_url": f"{settings.SUBSCRIPTION_CHECKOUT_URL}?{query}",
        "organization_id": organization.id,
        "organization_name": organization.name,
        "product_id": settings.SUBSCRIPTION_PRODUCT_ID,
        "amount": settings.SUBSCRIPTION_PRICE_AMOUNT,
        "currency": settings.SUBSCRIPTION_CURRENCY,
        "success_url": (
            f"{settings.CORS_ORIGIN}/subscription/success?organizationId={organization.id}"
        ),
        "metadata": metadata,
        "message": "Complete payment to activate your organization",
    }


def get_subscription_status(user: User, organization_id: int) -> dict[str, Any]:
    """Enablement and subscription bookkeeping for a member."""
    require_membership(user, organization_id)
    organization = get_organization(organization_id)
    return {
        "enabled": organization.enabled,
        "subscription_active": organization.enabled,
        "metadata": organization.metadata or {},
        "needs_subscription": not organization.enabled,
    }
