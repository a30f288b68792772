"""Shared pytest fixtures."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest


def at(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Aware UTC datetime; the test settings evaluate schedules in UTC."""
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def garage(db):
    from apps.garages.models import Garage

    return Garage.objects.create(name="Central Garage", city="Springfield", capacity=40)


@pytest.fixture
def other_garage(db):
    from apps.garages.models import Garage

    return Garage.objects.create(name="Harbor Garage", city="Shelbyville", capacity=25)
