"""
Status Resolver

Pure derivation of a garage's effective status from its stored rows and
a caller-supplied instant. Nothing here touches the database, so override
expiry and schedule transitions are evaluated lazily on every read.

Precedence (first match wins):
1. Unexpired temporary override (latest created wins)
2. Manual MAINTENANCE / EMERGENCY_CLOSED hold
3. Manual CLOSED
4. Manual OPEN defers to the weekly schedule
"""

from datetime import datetime, tzinfo
from typing import Optional

from .entities import (
    HOLD_STATUSES,
    EffectiveStatus,
    GarageStatusRows,
    ManualStatus,
    StatusSource,
    WeeklySchedule,
    winning_override,
)

REASON_OPEN_24_7 = 'open 24/7'
REASON_NOT_OPERATING_DAY = 'not an operating day'
REASON_WITHIN_HOURS = 'within operating hours'
REASON_OUTSIDE_HOURS = 'outside operating hours'


def _to_local(now: datetime, tz: Optional[tzinfo]) -> datetime:
    if tz is None or now.tzinfo is None:
        return now
    return now.astimezone(tz)


def resolve_schedule(garage_id: int, schedule: WeeklySchedule, local_now: datetime) -> EffectiveStatus:
    """Evaluate the weekly schedule at a local wall-clock instant."""
    if schedule.is_24_7:
        return EffectiveStatus(garage_id, ManualStatus.OPEN, REASON_OPEN_24_7, StatusSource.SCHEDULE)

    if local_now.weekday() not in schedule.operating_days:
        return EffectiveStatus(garage_id, ManualStatus.CLOSED, REASON_NOT_OPERATING_DAY, StatusSource.SCHEDULE)

    if schedule.window.contains(local_now.time()):
        return EffectiveStatus(garage_id, ManualStatus.OPEN, REASON_WITHIN_HOURS, StatusSource.SCHEDULE)
    return EffectiveStatus(garage_id, ManualStatus.CLOSED, REASON_OUTSIDE_HOURS, StatusSource.SCHEDULE)


def resolve(rows: GarageStatusRows, now: datetime, tz: Optional[tzinfo] = None) -> EffectiveStatus:
    """
    Resolve the effective status of one garage

    Args:
        rows: Status, schedule and overrides of the garage
        now: The instant to evaluate; compared against override expiry as-is
        tz: Zone the schedule is expressed in; ``now`` is converted to it

    Returns:
        EffectiveStatus carrying one of the four statuses and the reason
    """
    override = winning_override(rows.overrides, now)
    if override is not None:
        return EffectiveStatus(
            garage_id=rows.garage_id,
            status=override.forced_status,
            reason=f"temporary override until {override.override_until.isoformat()}",
            source=StatusSource.OVERRIDE,
            until=override.override_until,
        )

    manual = rows.status
    if manual.status in HOLD_STATUSES or manual.status is ManualStatus.CLOSED:
        return EffectiveStatus(rows.garage_id, manual.status, manual.reason, StatusSource.MANUAL)

    return resolve_schedule(rows.garage_id, rows.schedule, _to_local(now, tz))
