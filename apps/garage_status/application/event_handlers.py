"""
Audit Event Handlers

Write one structured audit line per committed status engine event. The
durable status history lives in the database; these lines feed the log
pipeline.
"""

import structlog

from shared.application.message_bus import MessageBus
from apps.garage_status.domain.events import (
    OperationalStatusChanged,
    OverrideApplied,
    OverrideCancelled,
    ScheduleUpdated,
)

audit_logger = structlog.get_logger("apps.garage_status.audit")


def log_status_changed(event: OperationalStatusChanged):
    audit_logger.info("garage_status_changed", **event.to_dict())


def log_schedule_updated(event: ScheduleUpdated):
    audit_logger.info("garage_schedule_updated", **event.to_dict())


def log_override_applied(event: OverrideApplied):
    audit_logger.info("garage_override_applied", **event.to_dict())


def log_override_cancelled(event: OverrideCancelled):
    audit_logger.info("garage_override_cancelled", **event.to_dict())


def register_handlers(bus: MessageBus):
    bus.register_event_handler(OperationalStatusChanged, log_status_changed)
    bus.register_event_handler(ScheduleUpdated, log_schedule_updated)
    bus.register_event_handler(OverrideApplied, log_override_applied)
    bus.register_event_handler(OverrideCancelled, log_override_cancelled)
