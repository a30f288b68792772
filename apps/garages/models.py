"""Garage records for the parking marketplace."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Garage(models.Model):
    """A garage listed on the marketplace."""

    name = models.CharField(max_length=200)
    owner_name = models.CharField(max_length=200, blank=True)
    city = models.CharField(max_length=100, blank=True)
    address = models.CharField(max_length=255, blank=True)
    capacity = models.PositiveIntegerField(default=0, help_text=_("Number of parking spots."))
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Garage")
        verbose_name_plural = _("Garages")
        ordering = ["name"]
        indexes = [
            models.Index(fields=["city"], name="garage_city_idx"),
        ]

    def __str__(self) -> str:
        return self.name
