"""
Billing models - subscription products, subscriptions and payments.

Source of truth is the subscription provider; these rows are synced from
its webhooks and keyed by the provider's identifiers so replays are no-ops.
"""

from django.conf import settings
from django.db import models

from apps.core.models import TimestampedModel
from apps.organizations.models import Organization


class Product(TimestampedModel):
    """A plan offered through the subscription provider."""

    class Interval(models.TextChoices):
        MONTH = "month", "Monthly"
        YEAR = "year", "Yearly"

    external_product_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Provider product ID, e.g. 'prod_medisched_monthly'",
    )
    name = models.CharField(max_length=255)
    price_amount = models.PositiveIntegerField(help_text="Price in the currency's minor unit")
    currency = models.CharField(max_length=3, default="usd")
    interval = models.CharField(
        max_length=10,
        choices=Interval.choices,
        default=Interval.MONTH,
    )

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Subscription(TimestampedModel):
    """
    An organization's subscription, one row per completed checkout.
    """

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        CANCELLED = "cancelled", "Cancelled"
        PAST_DUE = "past_due", "Past Due"
        INCOMPLETE = "incomplete", "Incomplete"

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="subscriptions",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="subscriptions",
        help_text="Subscriber who completed the checkout",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="subscriptions",
    )
    checkout_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Provider checkout ID; idempotency key for webhook replays",
    )
    external_subscription_id = models.CharField(
        max_length=255,
        blank=True,
        db_index=True,
        help_text="Provider subscription ID",
    )
    customer_id = models.CharField(max_length=255, blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.INCOMPLETE,
        db_index=True,
    )
    current_period_start = models.DateTimeField(null=True, blank=True)
    current_period_end = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.organization_id} - {self.status}"

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE


class Payment(models.Model):
    """A recorded payment. Rows are only ever inserted."""

    subscription = models.ForeignKey(
        Subscription,
        on_delete=models.CASCADE,
        related_name="payments",
    )
    external_payment_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Provider payment/order ID; idempotency key",
    )
    amount = models.PositiveIntegerField(help_text="Amount in the currency's minor unit")
    currency = models.CharField(max_length=3, default="usd")
    status = models.CharField(max_length=50, default="succeeded")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.external_payment_id} ({self.amount} {self.currency})"
