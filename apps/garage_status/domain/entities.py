"""
Garage Status Domain Entities

Snapshots of the three per-garage rows the status engine works with:
- OperationalStatus: admin-set manual status (aggregate)
- WeeklySchedule: recurring operating hours (aggregate)
- OverrideLedger: append-only temporary overrides (aggregate)
- EffectiveStatus: result of resolving the rows at an instant
"""

from dataclasses import dataclass, field
from datetime import datetime, time
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Sequence

from shared.domain.base import Aggregate
from shared.domain.value_objects import DailyWindow

from .events import (
    OperationalStatusChanged,
    OverrideApplied,
    OverrideCancelled,
    ScheduleUpdated,
)
from .exceptions import InvalidOverrideWindow, InvalidSchedule, ValidationError


class ManualStatus(Enum):
    """
    Operational status of a garage

    The manual status machine is fully connected: any state can move to
    any other through SetStatus and there is no terminal state.
    """
    OPEN = 'open'
    CLOSED = 'closed'
    MAINTENANCE = 'maintenance'
    EMERGENCY_CLOSED = 'emergency_closed'


# Administrative holds outrank the weekly schedule
HOLD_STATUSES = frozenset({ManualStatus.MAINTENANCE, ManualStatus.EMERGENCY_CLOSED})


class OverrideAction(Enum):
    FORCE_OPEN = 'force_open'
    FORCE_CLOSED = 'force_closed'


class StatusSource(Enum):
    """Which layer decided the effective status"""
    OVERRIDE = 'override'
    MANUAL = 'manual'
    SCHEDULE = 'schedule'


class Weekday(int, Enum):
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


ALL_WEEKDAYS: FrozenSet[int] = frozenset(day.value for day in Weekday)
DEFAULT_OPENING_TIME = time(9, 0)
DEFAULT_CLOSING_TIME = time(22, 0)


@dataclass
class OperationalStatus(Aggregate):
    """
    Manual status aggregate

    Exactly one current row exists per initialized garage. ``version``
    is the optimistic concurrency token checked on write.
    """
    status: ManualStatus = ManualStatus.OPEN
    reason: str = ''
    changed_by: Optional[int] = None
    changed_at: Optional[datetime] = None
    force_close_used: bool = False
    version: int = 1

    @staticmethod
    def validate_transition(new_status: ManualStatus, reason: str) -> str:
        """Return the cleaned reason, or raise ValidationError."""
        if not isinstance(new_status, ManualStatus):
            raise ValidationError(f"Unknown operational status: {new_status!r}")
        reason = (reason or '').strip()
        if new_status is not ManualStatus.OPEN and not reason:
            raise ValidationError(
                f"A reason is required to set status to {new_status.value}"
            )
        return reason

    def change(
        self,
        new_status: ManualStatus,
        reason: str,
        actor_id: Optional[int],
        now: datetime,
        force_close: bool = False,
        active_bookings: Optional[int] = None,
    ) -> None:
        """
        Move to ``new_status``

        A reason is mandatory for every target other than OPEN. Setting
        the current status again is allowed and recorded like any change.
        ``force_close`` is only recorded when it bypassed the booking check.
        """
        reason = self.validate_transition(new_status, reason)

        previous = self.status
        self.status = new_status
        self.reason = reason
        self.changed_by = actor_id
        self.changed_at = now
        self.force_close_used = bool(force_close) and new_status is not ManualStatus.OPEN

        self.add_event(OperationalStatusChanged(
            garage_id=self.garage_id,
            actor_id=actor_id,
            previous_status=previous.value,
            status=new_status.value,
            reason=reason,
            force_close_used=self.force_close_used,
            active_bookings=active_bookings,
        ))


@dataclass
class WeeklySchedule(Aggregate):
    """
    Weekly operating schedule aggregate

    One row per garage, replaced in place. An empty ``operating_days``
    set without 24/7 means the garage is closed every day.
    """
    is_24_7: bool = False
    opening_time: time = DEFAULT_OPENING_TIME
    closing_time: time = DEFAULT_CLOSING_TIME
    operating_days: FrozenSet[int] = ALL_WEEKDAYS
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None
    version: int = 1

    @property
    def window(self) -> DailyWindow:
        return DailyWindow(self.opening_time, self.closing_time)

    def replace(
        self,
        is_24_7: bool,
        opening_time: time,
        closing_time: time,
        operating_days: Iterable[int],
        actor_id: Optional[int],
        now: datetime,
        allow_no_operating_days: bool = False,
    ) -> List[str]:
        """
        Replace the schedule

        Returns warnings for accepted-but-degenerate input.

        Raises:
            ValidationError: times or weekday numbers are malformed
            InvalidSchedule: empty operating days without acknowledgement
        """
        if not isinstance(opening_time, time) or not isinstance(closing_time, time):
            raise ValidationError("Opening and closing times are required")

        days = frozenset(int(day) for day in operating_days)
        unknown = sorted(days - ALL_WEEKDAYS)
        if unknown:
            raise ValidationError(
                f"Operating days must be weekday numbers 0-6, got {unknown}"
            )

        warnings: List[str] = []
        if not is_24_7:
            if not days and not allow_no_operating_days:
                raise InvalidSchedule(
                    "No operating days selected; the garage would be closed every day. "
                    "Confirm with allow_no_operating_days to save this schedule."
                )
            if not days:
                warnings.append("No operating days selected: the garage is closed every day")
            if opening_time == closing_time:
                warnings.append(
                    "Opening time equals closing time: the garage is closed all day"
                )

        self.is_24_7 = bool(is_24_7)
        self.opening_time = opening_time.replace(tzinfo=None)
        self.closing_time = closing_time.replace(tzinfo=None)
        self.operating_days = days
        self.updated_by = actor_id
        self.updated_at = now

        self.add_event(ScheduleUpdated(
            garage_id=self.garage_id,
            actor_id=actor_id,
            is_24_7=self.is_24_7,
            opening_time=self.opening_time,
            closing_time=self.closing_time,
            operating_days=tuple(sorted(days)),
        ))
        return warnings


@dataclass
class TemporaryOverride:
    """A time-boxed forced status. Rows are never deleted."""
    garage_id: int
    override_until: datetime
    override_action: OverrideAction
    reason: str
    created_at: datetime
    created_by: Optional[int] = None
    id: Optional[int] = None
    cancelled_by: Optional[int] = None
    cancelled_at: Optional[datetime] = None

    def is_active(self, now: datetime) -> bool:
        return self.override_until > now

    @property
    def forced_status(self) -> ManualStatus:
        if self.override_action is OverrideAction.FORCE_OPEN:
            return ManualStatus.OPEN
        return ManualStatus.CLOSED


def winning_override(overrides: Iterable[TemporaryOverride], now: datetime) -> Optional[TemporaryOverride]:
    """Latest-created unexpired override; earlier ones stay inert."""
    active = [override for override in overrides if override.is_active(now)]
    if not active:
        return None
    return max(active, key=lambda override: (override.created_at, override.id or 0))


@dataclass
class OverrideLedger(Aggregate):
    """
    Temporary overrides of one garage

    New overrides are appended to ``pending``; a cancellation shortens the
    winning override in place and is tracked in ``cancelled``.
    """
    overrides: List[TemporaryOverride] = field(default_factory=list)
    pending: List[TemporaryOverride] = field(default_factory=list, repr=False)
    cancelled: List[TemporaryOverride] = field(default_factory=list, repr=False)

    def winning(self, now: datetime) -> Optional[TemporaryOverride]:
        return winning_override(self.overrides, now)

    def apply(
        self,
        override_until: datetime,
        action: OverrideAction,
        reason: str,
        actor_id: Optional[int],
        now: datetime,
    ) -> TemporaryOverride:
        if not isinstance(action, OverrideAction):
            raise ValidationError(f"Unknown override action: {action!r}")
        if override_until <= now:
            raise InvalidOverrideWindow(
                f"Override must end in the future (until={override_until.isoformat()}, "
                f"now={now.isoformat()})"
            )
        reason = (reason or '').strip()
        if not reason:
            raise ValidationError("A reason is required for a temporary override")

        override = TemporaryOverride(
            garage_id=self.garage_id,
            override_until=override_until,
            override_action=action,
            reason=reason,
            created_by=actor_id,
            created_at=now,
        )
        self.overrides.append(override)
        self.pending.append(override)
        self.add_event(OverrideApplied(
            garage_id=self.garage_id,
            actor_id=actor_id,
            override_action=action.value,
            override_until=override_until,
            reason=reason,
        ))
        return override

    def cancel_active(self, actor_id: Optional[int], now: datetime) -> Optional[TemporaryOverride]:
        """Expire the winning override at ``now``; None when nothing is active."""
        override = self.winning(now)
        if override is None:
            return None

        original_until = override.override_until
        override.override_until = now
        override.cancelled_by = actor_id
        override.cancelled_at = now
        self.cancelled.append(override)
        self.add_event(OverrideCancelled(
            garage_id=self.garage_id,
            actor_id=actor_id,
            override_id=override.id,
            override_action=override.override_action.value,
            original_until=original_until,
        ))
        return override


@dataclass(frozen=True)
class GarageStatusRows:
    """Everything the resolver needs for one garage, fetched up front"""
    garage_id: int
    status: OperationalStatus
    schedule: WeeklySchedule
    overrides: Sequence[TemporaryOverride] = ()


@dataclass(frozen=True)
class EffectiveStatus:
    """Point-in-time status used for booking admission and the dashboard badge"""
    garage_id: int
    status: ManualStatus
    reason: str
    source: StatusSource
    until: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status is ManualStatus.OPEN

    def to_dict(self) -> dict:
        return {
            'garage_id': self.garage_id,
            'effective_status': self.status.value,
            'reason': self.reason,
            'source': self.source.value,
            'until': self.until.isoformat() if self.until else None,
        }
