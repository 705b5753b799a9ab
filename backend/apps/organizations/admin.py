"""Admin configuration for organizations app."""

from django.contrib import admin

from apps.organizations.models import Department, Member, Organization


class MemberInline(admin.TabularInline):
    model = Member
    extra = 0
    raw_id_fields = ["user"]


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    """Admin for Organization model. ``enabled`` follows the subscription."""

    list_display = ["name", "slug", "enabled", "created_at"]
    list_filter = ["enabled"]
    search_fields = ["name", "slug"]
    readonly_fields = ["created_at", "updated_at"]
    inlines = [MemberInline]
    ordering = ["name"]


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ["name", "organization", "created_at"]
    list_filter = ["organization"]
    search_fields = ["name", "organization__name"]
