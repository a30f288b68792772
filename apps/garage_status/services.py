"""Initialization and collaborator lookup for the status engine."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.module_loading import import_string  # type: ignore

from .domain.entities import ManualStatus
from .models import GarageOperationalStatus, GarageStatusHistory, GarageWeeklySchedule

logger = logging.getLogger(__name__)

INITIAL_STATUS_REASON = "Initial status"

ActiveBookingCounter = Callable[[int], int]


def get_active_booking_counter() -> ActiveBookingCounter:
    """Resolve the booking subsystem's ActiveBookingCount query."""

    path = getattr(
        settings,
        "GARAGE_ACTIVE_BOOKING_COUNTER",
        "apps.bookings.services.count_active_bookings",
    )
    return import_string(path)


@transaction.atomic
def initialize_garage_status(
    garage_id: int,
    *,
    actor_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> tuple[bool, bool]:
    """Seed the OPEN status row and the default schedule for a garage.

    Idempotent: existing rows are left untouched. Returns which of the two
    rows were created.
    """

    now = now or timezone.now()
    _, status_created = GarageOperationalStatus.objects.get_or_create(
        garage_id=garage_id,
        defaults={
            "status": ManualStatus.OPEN.value,
            "reason": INITIAL_STATUS_REASON,
            "changed_by_id": actor_id,
            "changed_at": now,
        },
    )
    if status_created:
        GarageStatusHistory.objects.create(
            garage_id=garage_id,
            status=ManualStatus.OPEN.value,
            reason=INITIAL_STATUS_REASON,
            changed_by_id=actor_id,
            changed_at=now,
        )

    _, schedule_created = GarageWeeklySchedule.objects.get_or_create(
        garage_id=garage_id,
        defaults={"updated_by_id": actor_id, "updated_at": now},
    )

    if status_created or schedule_created:
        logger.info(
            f"Initialized status rows for garage {garage_id} "
            f"(status={status_created}, schedule={schedule_created})"
        )
    return status_created, schedule_created
