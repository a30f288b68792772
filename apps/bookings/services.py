"""Booking-side collaborators of the garage status engine."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from apps.garage_status.application.queries import StatusResolverService
from apps.garage_status.domain.entities import EffectiveStatus

from .models import Booking


class GarageClosedError(Exception):
    """Raised when a garage does not accept new bookings right now."""

    def __init__(self, effective: EffectiveStatus):
        self.effective = effective
        super().__init__(
            f"Garage is not accepting bookings ({effective.status.value}: {effective.reason})."
        )


def count_active_bookings(garage_id: int) -> int:
    """Number of upcoming or active bookings for a garage."""

    return Booking.objects.filter(
        garage_id=garage_id,
        status__in=Booking.BLOCKING_STATUSES,
    ).count()


def ensure_garage_accepts_bookings(
    garage_id: int,
    now: Optional[datetime] = None,
    *,
    resolver: Optional[StatusResolverService] = None,
) -> EffectiveStatus:
    """Admit a new booking only while the garage's effective status is OPEN.

    Resolver errors (missing status rows) propagate unchanged.
    """

    effective = (resolver or StatusResolverService()).resolve(garage_id, now)
    if not effective.is_open:
        raise GarageClosedError(effective)
    return effective
