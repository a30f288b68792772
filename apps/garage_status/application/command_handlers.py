"""
Garage Status Command Handlers

The write side of the status engine (admin commands).

Commands:
- SetStatusCommand: Change the manual operational status
- SetScheduleCommand: Replace the weekly operating schedule
- ApplyOverrideCommand: Add a temporary forced status
- CancelOverrideCommand: Expire the currently winning override

Every handler runs its read-decide-write sequence inside one
DjangoUnitOfWork. The garage's status row is locked first, which
serializes all mutations of that garage; writes also compare-and-set the
row version. A lost update is retried once before it reaches the caller.
"""

from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Any, Dict, FrozenSet, List, Optional
import logging

from django.conf import settings
from django.db import OperationalError
from django.utils import timezone

from shared.application.uow import DjangoUnitOfWork
from apps.garage_status.domain.entities import ManualStatus, OperationalStatus, OverrideAction
from apps.garage_status.domain.exceptions import (
    ActiveBookingsConflict,
    ConcurrencyConflict,
    LockTimeout,
    ValidationError,
)
from apps.garage_status.repositories import (
    OperationalStatusRepository,
    TemporaryOverrideRepository,
    WeeklyScheduleRepository,
)
from apps.garage_status.services import ActiveBookingCounter, get_active_booking_counter

logger = logging.getLogger(__name__)

# query_canceled (statement_timeout) and lock_not_available (lock_timeout)
LOCK_WAIT_SQLSTATES = frozenset({"57014", "55P03"})


def is_lock_wait_timeout(exc: OperationalError) -> bool:
    """True when ``exc`` means the row lock could not be taken in time"""
    cause = exc.__cause__
    sqlstate = getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)
    if sqlstate:
        return sqlstate in LOCK_WAIT_SQLSTATES
    message = str(exc).lower()
    return "statement timeout" in message or "lock timeout" in message or "database is locked" in message


# ===== Commands =====

@dataclass
class SetStatusCommand:
    """Command to set the manual status of a garage"""
    garage_id: int
    status: ManualStatus
    reason: str = ''
    actor_id: Optional[int] = None
    force_close: bool = False
    now: Optional[datetime] = None


@dataclass
class SetScheduleCommand:
    """
    Command to replace the weekly schedule

    ``allow_no_operating_days`` acknowledges that an empty day set keeps
    the garage closed every day.
    """
    garage_id: int
    is_24_7: bool
    opening_time: time
    closing_time: time
    operating_days: FrozenSet[int]
    actor_id: Optional[int] = None
    allow_no_operating_days: bool = False
    now: Optional[datetime] = None


@dataclass
class ApplyOverrideCommand:
    """Command to force a garage open or closed until a given instant"""
    garage_id: int
    override_until: datetime
    action: OverrideAction
    reason: str
    actor_id: Optional[int] = None
    now: Optional[datetime] = None


@dataclass
class CancelOverrideCommand:
    """Command to cut the winning override short"""
    garage_id: int
    actor_id: Optional[int] = None
    now: Optional[datetime] = None


@dataclass
class CommandResult:
    """Outcome of a successful command, rendered into the response envelope"""
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


# ===== Command Handlers =====

class GarageCommandHandler:
    """
    Base handler: retry on lost update

    A lock wait cut short by the statement timeout is reported as
    ``LockTimeout`` and retried like any other conflict.

    Subclasses implement ``_handle`` as one complete transaction.
    """

    def __init__(self, status_repo: Optional[OperationalStatusRepository] = None):
        self.status_repo = status_repo or OperationalStatusRepository()

    @staticmethod
    def _now(now: Optional[datetime]) -> datetime:
        now = now or timezone.now()
        if timezone.is_naive(now):
            now = timezone.make_aware(now)
        return now

    def handle(self, command) -> CommandResult:
        retries = int(getattr(settings, 'GARAGE_STATUS_CONFLICT_RETRIES', 1))
        attempt = 0
        while True:
            try:
                return self._attempt(command)
            except ConcurrencyConflict:
                if attempt >= retries:
                    logger.warning(
                        f"{type(command).__name__} for garage {command.garage_id} "
                        f"lost a concurrent update after {attempt + 1} attempt(s)"
                    )
                    raise
                attempt += 1
                logger.warning(
                    f"Concurrent update on garage {command.garage_id}, "
                    f"retrying {type(command).__name__} ({attempt}/{retries})"
                )

    def _attempt(self, command) -> CommandResult:
        try:
            return self._handle(command)
        except OperationalError as exc:
            if not is_lock_wait_timeout(exc):
                raise
            raise LockTimeout(command.garage_id) from exc

    def _handle(self, command) -> CommandResult:
        raise NotImplementedError

    def _lock_garage(self, garage_id: int):
        """Lock the status row; every mutation of a garage goes through it"""
        return self.status_repo.get(garage_id, lock=True)


class SetStatusHandler(GarageCommandHandler):
    """
    Handler for SetStatus

    Closing a garage (any target other than OPEN) is refused while it has
    upcoming or active bookings, unless the admin forces it.
    """

    def __init__(
        self,
        status_repo: Optional[OperationalStatusRepository] = None,
        booking_counter: Optional[ActiveBookingCounter] = None,
    ):
        super().__init__(status_repo)
        self.booking_counter = booking_counter

    def _handle(self, command: SetStatusCommand) -> CommandResult:
        if not isinstance(command.status, ManualStatus):
            try:
                command.status = ManualStatus(command.status)
            except ValueError:
                raise ValidationError(f"Unknown operational status: {command.status!r}")
        reason = OperationalStatus.validate_transition(command.status, command.reason)
        now = self._now(command.now)

        with DjangoUnitOfWork() as uow:
            status = self._lock_garage(command.garage_id)

            active_bookings = None
            if command.status is not ManualStatus.OPEN and not command.force_close:
                counter = self.booking_counter or get_active_booking_counter()
                active_bookings = int(counter(command.garage_id))
                if active_bookings > 0:
                    logger.warning(
                        f"Refused to set garage {command.garage_id} to {command.status.value}: "
                        f"{active_bookings} active bookings"
                    )
                    raise ActiveBookingsConflict(active_bookings)

            previous = status.status
            status.change(
                command.status,
                reason,
                actor_id=command.actor_id,
                now=now,
                force_close=command.force_close,
                active_bookings=active_bookings,
            )
            self.status_repo.save(status)
            self.status_repo.append_history(status, previous, active_bookings)
            uow.collect_events(status)

        logger.info(
            f"Garage {command.garage_id} status {previous.value} -> {status.status.value} "
            f"by user {command.actor_id} (force_close={command.force_close})"
        )
        message = f"Garage status set to {status.status.value}"
        if command.force_close and command.status is not ManualStatus.OPEN:
            message += " (force close)"
        return CommandResult(
            message=message,
            data={
                'garage_id': command.garage_id,
                'status': status.status.value,
                'previous_status': previous.value,
                'reason': status.reason,
                'changed_at': status.changed_at.isoformat(),
                'force_close_used': status.force_close_used,
            },
        )


class SetScheduleHandler(GarageCommandHandler):
    """Handler for SetSchedule: replace the single schedule row"""

    def __init__(
        self,
        status_repo: Optional[OperationalStatusRepository] = None,
        schedule_repo: Optional[WeeklyScheduleRepository] = None,
    ):
        super().__init__(status_repo)
        self.schedule_repo = schedule_repo or WeeklyScheduleRepository()

    def _handle(self, command: SetScheduleCommand) -> CommandResult:
        now = self._now(command.now)

        with DjangoUnitOfWork() as uow:
            self._lock_garage(command.garage_id)
            schedule = self.schedule_repo.get(command.garage_id, lock=True)
            warnings = schedule.replace(
                is_24_7=command.is_24_7,
                opening_time=command.opening_time,
                closing_time=command.closing_time,
                operating_days=command.operating_days,
                actor_id=command.actor_id,
                now=now,
                allow_no_operating_days=command.allow_no_operating_days,
            )
            self.schedule_repo.save(schedule)
            uow.collect_events(schedule)

        for warning in warnings:
            logger.warning(f"Garage {command.garage_id} schedule saved with warning: {warning}")
        logger.info(f"Garage {command.garage_id} schedule updated by user {command.actor_id}")
        return CommandResult(
            message="Operating schedule updated",
            data={
                'garage_id': command.garage_id,
                'is_24_7': schedule.is_24_7,
                'opening_time': schedule.opening_time.strftime('%H:%M'),
                'closing_time': schedule.closing_time.strftime('%H:%M'),
                'operating_days': sorted(schedule.operating_days),
            },
            warnings=warnings,
        )


class ApplyOverrideHandler(GarageCommandHandler):
    """Handler for ApplyOverride: insert a new row, never touch older ones"""

    def __init__(
        self,
        status_repo: Optional[OperationalStatusRepository] = None,
        override_repo: Optional[TemporaryOverrideRepository] = None,
    ):
        super().__init__(status_repo)
        self.override_repo = override_repo or TemporaryOverrideRepository()

    def _handle(self, command: ApplyOverrideCommand) -> CommandResult:
        if not isinstance(command.action, OverrideAction):
            try:
                command.action = OverrideAction(command.action)
            except ValueError:
                raise ValidationError(f"Unknown override action: {command.action!r}")
        now = self._now(command.now)
        until = command.override_until
        if timezone.is_naive(until):
            until = timezone.make_aware(until)

        with DjangoUnitOfWork() as uow:
            self._lock_garage(command.garage_id)
            ledger = self.override_repo.get_ledger(command.garage_id, now)
            override = ledger.apply(until, command.action, command.reason, command.actor_id, now)
            self.override_repo.save(ledger)
            uow.collect_events(ledger)

        logger.info(
            f"Garage {command.garage_id} override {override.override_action.value} "
            f"until {override.override_until.isoformat()} by user {command.actor_id}"
        )
        return CommandResult(
            message=f"Temporary override applied until {override.override_until.isoformat()}",
            data={
                'id': override.id,
                'garage_id': command.garage_id,
                'override_action': override.override_action.value,
                'override_until': override.override_until.isoformat(),
                'reason': override.reason,
                'created_at': override.created_at.isoformat(),
            },
        )


class CancelOverrideHandler(GarageCommandHandler):
    """Handler for CancelOverride: no active override is a successful no-op"""

    def __init__(
        self,
        status_repo: Optional[OperationalStatusRepository] = None,
        override_repo: Optional[TemporaryOverrideRepository] = None,
    ):
        super().__init__(status_repo)
        self.override_repo = override_repo or TemporaryOverrideRepository()

    def _handle(self, command: CancelOverrideCommand) -> CommandResult:
        now = self._now(command.now)

        with DjangoUnitOfWork() as uow:
            self._lock_garage(command.garage_id)
            ledger = self.override_repo.get_ledger(command.garage_id, now)
            override = ledger.cancel_active(command.actor_id, now)
            if override is not None:
                self.override_repo.save(ledger)
                uow.collect_events(ledger)

        if override is None:
            logger.info(f"Garage {command.garage_id} has no active override to cancel")
            return CommandResult(
                message="No active override to cancel",
                data={'garage_id': command.garage_id, 'cancelled': None},
            )

        logger.info(
            f"Garage {command.garage_id} override {override.id} cancelled by user {command.actor_id}"
        )
        return CommandResult(
            message="Temporary override cancelled",
            data={
                'garage_id': command.garage_id,
                'cancelled': {
                    'id': override.id,
                    'override_action': override.override_action.value,
                    'override_until': override.override_until.isoformat(),
                },
            },
        )
