"""Admin registration for the garage status tables."""

from __future__ import annotations

from django.contrib import admin

from .models import (
    GarageOperationalStatus,
    GarageStatusHistory,
    GarageTemporaryOverride,
    GarageWeeklySchedule,
)


@admin.register(GarageOperationalStatus)
class GarageOperationalStatusAdmin(admin.ModelAdmin):
    """Read-only here: changes must go through the status API so bookings are checked."""

    list_display = ("garage", "status", "reason", "changed_by", "changed_at", "force_close_used")
    list_filter = ("status", "force_close_used")
    search_fields = ("garage__name", "reason")
    list_select_related = ("garage", "changed_by")

    def has_add_permission(self, request):  # type: ignore
        return False

    def has_change_permission(self, request, obj=None):  # type: ignore
        return False

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(GarageStatusHistory)
class GarageStatusHistoryAdmin(GarageOperationalStatusAdmin):
    list_display = (
        "garage",
        "previous_status",
        "status",
        "reason",
        "changed_by",
        "changed_at",
        "force_close_used",
        "active_bookings",
    )
    date_hierarchy = "changed_at"


@admin.register(GarageWeeklySchedule)
class GarageWeeklyScheduleAdmin(admin.ModelAdmin):
    list_display = ("garage", "is_24_7", "opening_time", "closing_time", "operating_days", "updated_at")
    list_filter = ("is_24_7",)
    search_fields = ("garage__name",)

    def has_add_permission(self, request):  # type: ignore
        return False

    def has_change_permission(self, request, obj=None):  # type: ignore
        return False

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(GarageTemporaryOverride)
class GarageTemporaryOverrideAdmin(admin.ModelAdmin):
    list_display = ("garage", "override_action", "override_until", "reason", "created_by", "created_at", "cancelled_at")
    list_filter = ("override_action",)
    search_fields = ("garage__name", "reason")
    list_select_related = ("garage", "created_by")

    def has_add_permission(self, request):  # type: ignore
        return False

    def has_change_permission(self, request, obj=None):  # type: ignore
        return False

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False
