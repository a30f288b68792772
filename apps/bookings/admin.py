"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "garage",
        "customer",
        "vehicle_plate",
        "status",
        "starts_at",
        "ends_at",
        "created_at",
    )
    list_filter = ("status", "starts_at")
    search_fields = ("garage__name", "vehicle_plate", "customer__email")
    list_select_related = ("garage", "customer")
    readonly_fields = ("created_at", "updated_at")
