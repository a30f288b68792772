"""Booking records as far as the garage status engine needs them."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Booking(models.Model):
    """A parking booking at a garage."""

    class Status(models.TextChoices):
        UPCOMING = "upcoming", _("Upcoming")
        ACTIVE = "active", _("Active")
        COMPLETED = "completed", _("Completed")
        CANCELLED = "cancelled", _("Cancelled")

    # Bookings that keep a garage from being closed without force
    BLOCKING_STATUSES = (Status.UPCOMING, Status.ACTIVE)

    garage = models.ForeignKey(
        "garages.Garage",
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="garage_bookings",
    )
    vehicle_plate = models.CharField(max_length=20, blank=True)
    starts_at = models.DateTimeField()
    ends_at = models.DateTimeField()
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.UPCOMING,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-starts_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(ends_at__gt=models.F("starts_at")),
                name="garage_booking_valid_period",
            ),
        ]
        indexes = [
            models.Index(fields=["garage", "status"], name="booking_garage_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.pk} at garage {self.garage_id}"

    def clean(self) -> None:
        if self.starts_at and self.ends_at and self.starts_at >= self.ends_at:
            raise ValidationError(_("Booking must end after it starts."))
