"""Repositories mapping the status tables to domain snapshots.

Writes use a compare-and-set on ``version`` so a lost update surfaces as
``ConcurrencyConflict`` even on backends without ``SELECT ... FOR UPDATE``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from django.db import transaction  # type: ignore
from django.db.models import F  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from .domain.entities import (
    GarageStatusRows,
    ManualStatus,
    OperationalStatus,
    OverrideAction,
    OverrideLedger,
    TemporaryOverride,
    WeeklySchedule,
)
from .domain.exceptions import ConcurrencyConflict, NotFound
from .models import (
    GarageOperationalStatus,
    GarageStatusHistory,
    GarageTemporaryOverride,
    GarageWeeklySchedule,
)


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def status_from_model(row: GarageOperationalStatus) -> OperationalStatus:
    return OperationalStatus(
        garage_id=row.garage_id,
        status=ManualStatus(row.status),
        reason=row.reason,
        changed_by=row.changed_by_id,
        changed_at=row.changed_at,
        force_close_used=row.force_close_used,
        version=row.version,
    )


def schedule_from_model(row: GarageWeeklySchedule) -> WeeklySchedule:
    return WeeklySchedule(
        garage_id=row.garage_id,
        is_24_7=row.is_24_7,
        opening_time=row.opening_time,
        closing_time=row.closing_time,
        operating_days=frozenset(int(day) for day in (row.operating_days or [])),
        updated_by=row.updated_by_id,
        updated_at=row.updated_at,
        version=row.version,
    )


def override_from_model(row: GarageTemporaryOverride) -> TemporaryOverride:
    return TemporaryOverride(
        id=row.pk,
        garage_id=row.garage_id,
        override_until=row.override_until,
        override_action=OverrideAction(row.override_action),
        reason=row.reason,
        created_by=row.created_by_id,
        created_at=row.created_at,
        cancelled_by=row.cancelled_by_id,
        cancelled_at=row.cancelled_at,
    )


class OperationalStatusRepository:
    """StatusStore: the current manual status plus its audit history."""

    def get(self, garage_id: int, *, lock: bool = False) -> OperationalStatus:
        queryset = GarageOperationalStatus.objects.filter(garage_id=garage_id)
        if lock:
            queryset = _lock_queryset_if_possible(queryset)
        row = queryset.first()
        if row is None:
            raise NotFound([garage_id], what="operational status")
        return status_from_model(row)

    def save(self, status: OperationalStatus) -> None:
        updated = GarageOperationalStatus.objects.filter(
            garage_id=status.garage_id,
            version=status.version,
        ).update(
            status=status.status.value,
            reason=status.reason,
            changed_by_id=status.changed_by,
            changed_at=status.changed_at,
            force_close_used=status.force_close_used,
            version=F("version") + 1,
        )
        if updated != 1:
            raise ConcurrencyConflict(status.garage_id)
        status.version += 1

    def append_history(
        self,
        status: OperationalStatus,
        previous_status: Optional[ManualStatus],
        active_bookings: Optional[int] = None,
    ) -> GarageStatusHistory:
        return GarageStatusHistory.objects.create(
            garage_id=status.garage_id,
            previous_status=previous_status.value if previous_status else "",
            status=status.status.value,
            reason=status.reason,
            changed_by_id=status.changed_by,
            changed_at=status.changed_at,
            force_close_used=status.force_close_used,
            active_bookings=active_bookings,
        )

    def history(self, garage_id: int):
        return GarageStatusHistory.objects.filter(garage_id=garage_id).select_related("changed_by")


class WeeklyScheduleRepository:
    """ScheduleStore: one schedule row per garage, replaced in place."""

    def get(self, garage_id: int, *, lock: bool = False) -> WeeklySchedule:
        queryset = GarageWeeklySchedule.objects.filter(garage_id=garage_id)
        if lock:
            queryset = _lock_queryset_if_possible(queryset)
        row = queryset.first()
        if row is None:
            raise NotFound([garage_id], what="weekly schedule")
        return schedule_from_model(row)

    def save(self, schedule: WeeklySchedule) -> None:
        updated = GarageWeeklySchedule.objects.filter(
            garage_id=schedule.garage_id,
            version=schedule.version,
        ).update(
            is_24_7=schedule.is_24_7,
            opening_time=schedule.opening_time,
            closing_time=schedule.closing_time,
            operating_days=sorted(schedule.operating_days),
            updated_by_id=schedule.updated_by,
            updated_at=schedule.updated_at,
            version=F("version") + 1,
        )
        if updated != 1:
            raise ConcurrencyConflict(schedule.garage_id)
        schedule.version += 1


class TemporaryOverrideRepository:
    """OverrideStore: append-only, rows age out through ``override_until``."""

    def get_ledger(self, garage_id: int, now: datetime) -> OverrideLedger:
        rows = GarageTemporaryOverride.objects.filter(
            garage_id=garage_id,
            override_until__gt=now,
        )
        return OverrideLedger(
            garage_id=garage_id,
            overrides=[override_from_model(row) for row in rows],
        )

    def save(self, ledger: OverrideLedger) -> None:
        for override in ledger.pending:
            row = GarageTemporaryOverride.objects.create(
                garage_id=override.garage_id,
                override_until=override.override_until,
                override_action=override.override_action.value,
                reason=override.reason,
                created_by_id=override.created_by,
                created_at=override.created_at,
            )
            override.id = row.pk
        ledger.pending.clear()

        for override in ledger.cancelled:
            # Still active at cancellation time, otherwise someone beat us to it
            updated = GarageTemporaryOverride.objects.filter(
                pk=override.id,
                override_until__gt=override.cancelled_at,
            ).update(
                override_until=override.override_until,
                cancelled_by_id=override.cancelled_by,
                cancelled_at=override.cancelled_at,
            )
            if updated != 1:
                raise ConcurrencyConflict(ledger.garage_id)
        ledger.cancelled.clear()

    def history(self, garage_id: int):
        return GarageTemporaryOverride.objects.filter(garage_id=garage_id).select_related(
            "created_by", "cancelled_by"
        )


class GarageStatusReadRepository:
    """Batch reads for the resolver: three queries regardless of garage count."""

    def fetch_rows(self, garage_ids: Iterable[int], now: datetime) -> dict[int, GarageStatusRows]:
        """
        Load rows for every garage in ``garage_ids``.

        Raises:
            NotFound: when any garage lacks a status or schedule row
        """
        ids = sorted(set(garage_ids))
        if not ids:
            return {}

        statuses = {
            row.garage_id: status_from_model(row)
            for row in GarageOperationalStatus.objects.filter(garage_id__in=ids)
        }
        schedules = {
            row.garage_id: schedule_from_model(row)
            for row in GarageWeeklySchedule.objects.filter(garage_id__in=ids)
        }
        missing = [garage_id for garage_id in ids if garage_id not in statuses or garage_id not in schedules]
        if missing:
            raise NotFound(missing)

        overrides: dict[int, list[TemporaryOverride]] = {garage_id: [] for garage_id in ids}
        for row in GarageTemporaryOverride.objects.filter(garage_id__in=ids, override_until__gt=now):
            overrides[row.garage_id].append(override_from_model(row))

        return {
            garage_id: GarageStatusRows(
                garage_id=garage_id,
                status=statuses[garage_id],
                schedule=schedules[garage_id],
                overrides=tuple(overrides[garage_id]),
            )
            for garage_id in ids
        }
