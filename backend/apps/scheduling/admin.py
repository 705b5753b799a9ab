"""Admin configuration for scheduling app."""

from django.contrib import admin

from apps.scheduling.models import Booking, Event, Provider


@admin.register(Provider)
class ProviderAdmin(admin.ModelAdmin):
    """Admin for Provider model."""

    list_display = ["user", "department", "specialization", "created_at"]
    list_filter = ["department__organization"]
    search_fields = ["user__email", "user__name", "specialization"]
    raw_id_fields = ["user", "department"]


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    """
    Admin for Event model.

    Booking state is owned by the booking services, so ``is_booked`` and
    the derived duration are read-only here.
    """

    list_display = ["title", "provider", "start", "end", "duration", "is_booked"]
    list_filter = ["is_booked", "provider__department__organization"]
    search_fields = ["title", "provider__user__email"]
    readonly_fields = ["duration", "is_booked", "created_at", "updated_at"]
    raw_id_fields = ["provider"]
    date_hierarchy = "start"
    ordering = ["-start"]


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ["id", "event", "client", "status", "created_at"]
    list_filter = ["status"]
    search_fields = ["client__email", "event__title"]
    readonly_fields = ["event", "client", "created_at"]
    ordering = ["-created_at"]
