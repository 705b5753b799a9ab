"""Admin configuration for accounts app."""

from django.contrib import admin

from apps.accounts.models import ApiKey, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    """Admin for User model."""

    list_display = ["email", "name", "role", "is_active", "created_at"]
    list_filter = ["role", "is_active"]
    search_fields = ["email", "name"]
    readonly_fields = ["password", "last_login", "created_at", "updated_at"]
    ordering = ["-created_at"]


@admin.register(ApiKey)
class ApiKeyAdmin(admin.ModelAdmin):
    """Admin for API keys. Only the prefix and hash are stored."""

    list_display = ["name", "prefix", "user", "organization", "is_expired", "last_used_at"]
    list_filter = ["organization"]
    search_fields = ["name", "prefix", "user__email"]
    readonly_fields = ["prefix", "key_hash", "last_used_at", "created_at"]
    raw_id_fields = ["user", "organization"]
    ordering = ["-created_at"]

    @admin.display(boolean=True, description="Expired")
    def is_expired(self, obj: ApiKey) -> bool:
        return obj.is_expired
