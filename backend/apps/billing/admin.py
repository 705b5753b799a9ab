"""Admin configuration for billing app."""

from django.contrib import admin

from apps.billing.models import Payment, Product, Subscription


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ["name", "external_product_id", "price_amount", "currency", "interval"]
    search_fields = ["name", "external_product_id"]


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    readonly_fields = ["external_payment_id", "amount", "currency", "status", "created_at"]
    can_delete = False


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    """
    Admin for Subscription model.

    Rows are written by the subscription webhook; provider identifiers
    are read-only.
    """

    list_display = [
        "organization",
        "product",
        "status",
        "current_period_end",
        "is_active_display",
        "created_at",
    ]
    list_filter = ["status"]
    search_fields = ["organization__name", "external_subscription_id", "customer_id"]
    readonly_fields = [
        "checkout_id",
        "external_subscription_id",
        "customer_id",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["organization", "user"]
    inlines = [PaymentInline]
    ordering = ["-created_at"]

    @admin.display(boolean=True, description="Active")
    def is_active_display(self, obj: Subscription) -> bool:
        return obj.is_active
