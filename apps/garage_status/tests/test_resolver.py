"""Unit tests for the pure status resolver (no database)."""

from __future__ import annotations

from datetime import time, timedelta, timezone as dt_timezone
from zoneinfo import ZoneInfo

import pytest

from apps.garage_status.domain.entities import (
    GarageStatusRows,
    ManualStatus,
    OperationalStatus,
    OverrideAction,
    StatusSource,
    TemporaryOverride,
    WeeklySchedule,
)
from apps.garage_status.domain.resolver import resolve
from conftest import at

WEEKDAYS = frozenset({0, 1, 2, 3, 4})

# 2026-10-17 is a Saturday, 2026-10-19 a Monday
SATURDAY_10AM = at(2026, 10, 17, 10)
MONDAY_10AM = at(2026, 10, 19, 10)


def make_rows(
    status: ManualStatus = ManualStatus.OPEN,
    reason: str = "",
    schedule: WeeklySchedule | None = None,
    overrides=(),
) -> GarageStatusRows:
    return GarageStatusRows(
        garage_id=1,
        status=OperationalStatus(garage_id=1, status=status, reason=reason),
        schedule=schedule or WeeklySchedule(garage_id=1),
        overrides=tuple(overrides),
    )


def make_override(action, created_at, until, override_id=None) -> TemporaryOverride:
    return TemporaryOverride(
        id=override_id,
        garage_id=1,
        override_until=until,
        override_action=action,
        reason="event",
        created_at=created_at,
    )


def office_hours() -> WeeklySchedule:
    return WeeklySchedule(
        garage_id=1,
        opening_time=time(9, 0),
        closing_time=time(18, 0),
        operating_days=WEEKDAYS,
    )


def test_default_schedule_open_during_hours():
    effective = resolve(make_rows(), MONDAY_10AM)

    assert effective.status is ManualStatus.OPEN
    assert effective.reason == "within operating hours"
    assert effective.source is StatusSource.SCHEDULE


def test_closing_time_is_exclusive():
    schedule = office_hours()

    assert resolve(make_rows(schedule=schedule), at(2026, 10, 19, 9)).is_open
    assert not resolve(make_rows(schedule=schedule), at(2026, 10, 19, 18)).is_open
    assert resolve(make_rows(schedule=schedule), at(2026, 10, 19, 18)).reason == "outside operating hours"


def test_overnight_window_wraps_past_midnight():
    schedule = WeeklySchedule(
        garage_id=1,
        opening_time=time(22, 0),
        closing_time=time(6, 0),
        operating_days=frozenset(range(7)),
    )

    assert resolve(make_rows(schedule=schedule), at(2026, 10, 20, 2)).status is ManualStatus.OPEN
    assert resolve(make_rows(schedule=schedule), at(2026, 10, 20, 23)).status is ManualStatus.OPEN
    assert resolve(make_rows(schedule=schedule), at(2026, 10, 20, 6)).status is ManualStatus.CLOSED
    assert resolve(make_rows(schedule=schedule), at(2026, 10, 20, 12)).status is ManualStatus.CLOSED


def test_not_an_operating_day():
    effective = resolve(make_rows(schedule=office_hours()), SATURDAY_10AM)

    assert effective.status is ManualStatus.CLOSED
    assert effective.reason == "not an operating day"


def test_empty_operating_days_closed_every_day():
    schedule = WeeklySchedule(garage_id=1, operating_days=frozenset())

    for day in range(17, 24):
        assert resolve(make_rows(schedule=schedule), at(2026, 10, day, 12)).status is ManualStatus.CLOSED


def test_equal_opening_and_closing_closed_all_day():
    schedule = WeeklySchedule(garage_id=1, opening_time=time(8, 0), closing_time=time(8, 0))

    assert resolve(make_rows(schedule=schedule), at(2026, 10, 19, 8)).status is ManualStatus.CLOSED


def test_24_7_ignores_days_and_hours():
    schedule = WeeklySchedule(garage_id=1, is_24_7=True, operating_days=frozenset())

    effective = resolve(make_rows(schedule=schedule), at(2026, 10, 18, 3))

    assert effective.status is ManualStatus.OPEN
    assert effective.reason == "open 24/7"


@pytest.mark.parametrize("manual", [ManualStatus.MAINTENANCE, ManualStatus.EMERGENCY_CLOSED, ManualStatus.CLOSED])
def test_manual_hold_beats_open_schedule(manual):
    rows = make_rows(status=manual, reason="flooded basement")

    effective = resolve(rows, MONDAY_10AM)

    assert effective.status is manual
    assert effective.reason == "flooded basement"
    assert effective.source is StatusSource.MANUAL


def test_force_open_override_beats_closed_schedule():
    override = make_override(
        OverrideAction.FORCE_OPEN,
        created_at=SATURDAY_10AM - timedelta(hours=1),
        until=SATURDAY_10AM + timedelta(hours=5),
    )

    effective = resolve(make_rows(schedule=office_hours(), overrides=[override]), SATURDAY_10AM)

    assert effective.status is ManualStatus.OPEN
    assert effective.source is StatusSource.OVERRIDE
    assert effective.until == override.override_until
    assert effective.reason == f"temporary override until {override.override_until.isoformat()}"


def test_force_closed_override_beats_maintenance():
    override = make_override(
        OverrideAction.FORCE_CLOSED,
        created_at=MONDAY_10AM - timedelta(minutes=5),
        until=MONDAY_10AM + timedelta(hours=1),
    )
    rows = make_rows(status=ManualStatus.MAINTENANCE, reason="painting", overrides=[override])

    assert resolve(rows, MONDAY_10AM).status is ManualStatus.CLOSED


def test_expired_override_has_no_effect():
    override = make_override(
        OverrideAction.FORCE_OPEN,
        created_at=SATURDAY_10AM - timedelta(hours=3),
        until=SATURDAY_10AM - timedelta(seconds=1),
    )

    effective = resolve(make_rows(schedule=office_hours(), overrides=[override]), SATURDAY_10AM)

    assert effective.status is ManualStatus.CLOSED
    assert effective.reason == "not an operating day"


def test_override_ending_exactly_now_is_expired():
    override = make_override(
        OverrideAction.FORCE_CLOSED,
        created_at=MONDAY_10AM - timedelta(hours=1),
        until=MONDAY_10AM,
    )

    assert resolve(make_rows(overrides=[override]), MONDAY_10AM).is_open


def test_latest_created_override_wins():
    older = make_override(
        OverrideAction.FORCE_CLOSED,
        created_at=MONDAY_10AM - timedelta(hours=2),
        until=MONDAY_10AM + timedelta(days=1),
        override_id=1,
    )
    newer = make_override(
        OverrideAction.FORCE_OPEN,
        created_at=MONDAY_10AM - timedelta(hours=1),
        until=MONDAY_10AM + timedelta(hours=1),
        override_id=2,
    )
    rows = make_rows(status=ManualStatus.CLOSED, reason="x", overrides=[newer, older])

    assert resolve(rows, MONDAY_10AM).status is ManualStatus.OPEN
    # Once the newer one runs out the older one applies again
    assert resolve(rows, MONDAY_10AM + timedelta(hours=2)).status is ManualStatus.CLOSED


def test_schedule_evaluated_in_given_time_zone():
    almaty = ZoneInfo("Asia/Almaty")
    # 05:00 UTC is 10:00 in Almaty (UTC+5)
    now = at(2026, 10, 19, 5)

    assert resolve(make_rows(schedule=office_hours()), now, almaty).is_open
    assert not resolve(make_rows(schedule=office_hours()), now, dt_timezone.utc).is_open


def test_resolve_is_total_over_statuses_and_hours():
    override = make_override(
        OverrideAction.FORCE_OPEN,
        created_at=at(2026, 10, 18, 0),
        until=at(2026, 10, 18, 12),
    )
    for manual in ManualStatus:
        for overrides in ((), (override,)):
            rows = make_rows(status=manual, reason="r", schedule=office_hours(), overrides=overrides)
            for hour in range(0, 24 * 3, 5):
                effective = resolve(rows, at(2026, 10, 17) + timedelta(hours=hour))
                assert effective.status in set(ManualStatus)


def test_weekend_override_scenario():
    schedule = office_hours()
    rows = make_rows(schedule=schedule)
    assert resolve(rows, SATURDAY_10AM).reason == "not an operating day"

    until = at(2026, 10, 17, 23, 59)
    override = make_override(OverrideAction.FORCE_OPEN, created_at=SATURDAY_10AM, until=until)
    rows = make_rows(schedule=schedule, overrides=[override])

    assert resolve(rows, SATURDAY_10AM).status is ManualStatus.OPEN
    assert resolve(rows, until).status is ManualStatus.CLOSED
    assert resolve(rows, until + timedelta(minutes=5)).reason == "not an operating day"
