"""Tests for the booking-side status gate."""

from __future__ import annotations

from datetime import timedelta

import pytest

from apps.bookings.models import Booking
from apps.bookings.services import (
    GarageClosedError,
    count_active_bookings,
    ensure_garage_accepts_bookings,
)
from apps.garage_status.domain.entities import ManualStatus
from apps.garage_status.domain.exceptions import NotFound
from apps.garage_status.models import GarageOperationalStatus, GarageWeeklySchedule
from conftest import at

pytestmark = pytest.mark.django_db

MONDAY_10AM = at(2026, 10, 19, 10)
MONDAY_11PM = at(2026, 10, 19, 23)


def book(garage, status=Booking.Status.UPCOMING):
    return Booking.objects.create(
        garage=garage,
        vehicle_plate="KZ 123 ABC",
        starts_at=MONDAY_10AM,
        ends_at=MONDAY_10AM + timedelta(hours=4),
        status=status,
    )


def test_count_only_upcoming_and_active(garage, other_garage):
    book(garage, Booking.Status.UPCOMING)
    book(garage, Booking.Status.ACTIVE)
    book(garage, Booking.Status.COMPLETED)
    book(garage, Booking.Status.CANCELLED)
    book(other_garage, Booking.Status.ACTIVE)

    assert count_active_bookings(garage.pk) == 2
    assert count_active_bookings(other_garage.pk) == 1


def test_open_garage_accepts_bookings(garage):
    effective = ensure_garage_accepts_bookings(garage.pk, MONDAY_10AM)

    assert effective.status is ManualStatus.OPEN


def test_outside_hours_rejects_bookings(garage):
    # Default schedule closes at 22:00
    with pytest.raises(GarageClosedError) as excinfo:
        ensure_garage_accepts_bookings(garage.pk, MONDAY_11PM)

    assert excinfo.value.effective.reason == "outside operating hours"


def test_maintenance_rejects_bookings(garage):
    GarageOperationalStatus.objects.filter(garage=garage).update(status="maintenance", reason="Flooding")

    with pytest.raises(GarageClosedError) as excinfo:
        ensure_garage_accepts_bookings(garage.pk, MONDAY_10AM)

    assert excinfo.value.effective.status is ManualStatus.MAINTENANCE
    assert "Flooding" in str(excinfo.value)


def test_missing_rows_propagate(garage):
    GarageWeeklySchedule.objects.filter(garage=garage).delete()

    with pytest.raises(NotFound):
        ensure_garage_accepts_bookings(garage.pk, MONDAY_10AM)


def test_booking_must_end_after_start(garage):
    from django.core.exceptions import ValidationError

    booking = Booking(garage=garage, starts_at=MONDAY_10AM, ends_at=MONDAY_10AM)

    with pytest.raises(ValidationError):
        booking.clean()
