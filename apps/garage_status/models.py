"""Persistence for the garage status engine.

Per garage there is exactly one operational status row (with an
append-only history), exactly one weekly schedule row and zero or more
temporary overrides, none of which are ever deleted.
"""

from __future__ import annotations

from datetime import time

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


def default_operating_days() -> list[int]:
    return [0, 1, 2, 3, 4, 5, 6]


def default_opening_time() -> time:
    return time.fromisoformat(getattr(settings, "GARAGE_DEFAULT_OPENING_TIME", "09:00"))


def default_closing_time() -> time:
    return time.fromisoformat(getattr(settings, "GARAGE_DEFAULT_CLOSING_TIME", "22:00"))


class OperationalStatusChoices(models.TextChoices):
    OPEN = "open", _("Open")
    CLOSED = "closed", _("Closed")
    MAINTENANCE = "maintenance", _("Maintenance")
    EMERGENCY_CLOSED = "emergency_closed", _("Emergency closed")


class GarageOperationalStatus(models.Model):
    """Current manual status of a garage."""

    garage = models.OneToOneField(
        "garages.Garage",
        on_delete=models.CASCADE,
        related_name="operational_status",
    )
    status = models.CharField(
        max_length=20,
        choices=OperationalStatusChoices.choices,
        default=OperationalStatusChoices.OPEN,
    )
    reason = models.CharField(max_length=255, blank=True)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="garage_status_changes",
    )
    changed_at = models.DateTimeField(default=timezone.now)
    force_close_used = models.BooleanField(default=False)
    version = models.PositiveIntegerField(
        default=1,
        help_text=_("Incremented on every write; used to detect lost updates."),
    )

    class Meta:
        verbose_name = _("Garage operational status")
        verbose_name_plural = _("Garage operational statuses")
        indexes = [
            models.Index(fields=["status"], name="garage_status_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.garage_id}: {self.status}"


class GarageStatusHistory(models.Model):
    """Audit trail of manual status changes."""

    garage = models.ForeignKey(
        "garages.Garage",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    previous_status = models.CharField(
        max_length=20,
        choices=OperationalStatusChoices.choices,
        blank=True,
    )
    status = models.CharField(max_length=20, choices=OperationalStatusChoices.choices)
    reason = models.CharField(max_length=255, blank=True)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    changed_at = models.DateTimeField(default=timezone.now)
    force_close_used = models.BooleanField(default=False)
    active_bookings = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Active booking count observed when the change was made."),
    )

    class Meta:
        verbose_name = _("Garage status history entry")
        verbose_name_plural = _("Garage status history")
        ordering = ["-changed_at", "-id"]
        indexes = [
            models.Index(fields=["garage", "changed_at"], name="garage_status_hist_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.garage_id}: {self.previous_status or '-'} -> {self.status}"


class GarageWeeklySchedule(models.Model):
    """Recurring weekly operating hours of a garage."""

    garage = models.OneToOneField(
        "garages.Garage",
        on_delete=models.CASCADE,
        related_name="weekly_schedule",
    )
    is_24_7 = models.BooleanField(default=False)
    opening_time = models.TimeField(default=default_opening_time)
    closing_time = models.TimeField(
        default=default_closing_time,
        help_text=_("May be earlier than the opening time for overnight windows."),
    )
    operating_days = models.JSONField(
        default=default_operating_days,
        help_text=_("Weekday numbers, Monday=0 ... Sunday=6."),
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    updated_at = models.DateTimeField(default=timezone.now)
    version = models.PositiveIntegerField(default=1)

    class Meta:
        verbose_name = _("Garage weekly schedule")
        verbose_name_plural = _("Garage weekly schedules")

    def __str__(self) -> str:
        if self.is_24_7:
            return f"{self.garage_id}: 24/7"
        return f"{self.garage_id}: {self.opening_time:%H:%M}-{self.closing_time:%H:%M}"


class GarageTemporaryOverride(models.Model):
    """Time-boxed forced status. Cancelling shortens ``override_until``."""

    class Action(models.TextChoices):
        FORCE_OPEN = "force_open", _("Force open")
        FORCE_CLOSED = "force_closed", _("Force closed")

    garage = models.ForeignKey(
        "garages.Garage",
        on_delete=models.CASCADE,
        related_name="temporary_overrides",
    )
    override_until = models.DateTimeField()
    override_action = models.CharField(max_length=20, choices=Action.choices)
    reason = models.CharField(max_length=255)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="garage_overrides",
    )
    created_at = models.DateTimeField(default=timezone.now)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = _("Garage temporary override")
        verbose_name_plural = _("Garage temporary overrides")
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["garage", "override_until"], name="garage_override_until_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.garage_id}: {self.override_action} until {self.override_until:%Y-%m-%d %H:%M}"
