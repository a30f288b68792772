"""Admin registration for garages, with the live status badge."""

from __future__ import annotations

from django.contrib import admin
from django.utils.html import format_html

from apps.garage_status.application.queries import StatusResolverService
from apps.garage_status.domain.exceptions import NotFound

from .models import Garage

BADGE_COLORS = {
    "open": "#2e7d32",
    "closed": "#616161",
    "maintenance": "#ef6c00",
    "emergency_closed": "#c62828",
}


@admin.register(Garage)
class GarageAdmin(admin.ModelAdmin):
    list_display = ("name", "owner_name", "city", "capacity", "is_active", "effective_status")
    list_filter = ("is_active", "city")
    search_fields = ("name", "owner_name", "address")
    readonly_fields = ("created_at", "updated_at")

    def get_changelist_instance(self, request):  # type: ignore
        changelist = super().get_changelist_instance(request)
        garages = list(changelist.result_list)
        # One batch resolution for the visible page instead of per-row queries
        try:
            resolved = StatusResolverService().resolve_many([garage.pk for garage in garages])
        except NotFound as exc:
            resolved = {}
            for garage in garages:
                garage._status_error = exc.message
        for garage in garages:
            garage._effective_status = resolved.get(garage.pk)
        return changelist

    @admin.display(description="Status")
    def effective_status(self, obj: Garage):
        effective = getattr(obj, "_effective_status", None)
        if effective is None:
            return format_html(
                '<strong style="color:#c62828" title="{}">{}</strong>',
                getattr(obj, "_status_error", ""),
                "status unavailable",
            )
        return format_html(
            '<span title="{}" style="color:#fff;background:{};padding:2px 6px;border-radius:3px">{}</span>',
            effective.reason,
            BADGE_COLORS[effective.status.value],
            effective.status.value.replace("_", " "),
        )
