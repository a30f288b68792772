"""
Garage Status Domain Events

Published after the mutation's transaction commits. Handlers only write
the audit log; no notifications are pushed on status change.
"""

from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional, Tuple

from shared.domain.base import DomainEvent


@dataclass
class OperationalStatusChanged(DomainEvent):
    """Manual status set by an admin"""
    previous_status: str = ''
    status: str = ''
    reason: str = ''
    force_close_used: bool = False
    active_bookings: Optional[int] = None

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'previous_status': self.previous_status,
            'status': self.status,
            'reason': self.reason,
            'force_close_used': self.force_close_used,
            'active_bookings': self.active_bookings,
        })
        return data


@dataclass
class ScheduleUpdated(DomainEvent):
    """Weekly schedule replaced"""
    is_24_7: bool = False
    opening_time: Optional[time] = None
    closing_time: Optional[time] = None
    operating_days: Tuple[int, ...] = ()

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'is_24_7': self.is_24_7,
            'opening_time': self.opening_time.isoformat() if self.opening_time else None,
            'closing_time': self.closing_time.isoformat() if self.closing_time else None,
            'operating_days': list(self.operating_days),
        })
        return data


@dataclass
class OverrideApplied(DomainEvent):
    """Temporary override created"""
    override_action: str = ''
    override_until: Optional[datetime] = None
    reason: str = ''

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'override_action': self.override_action,
            'override_until': self.override_until.isoformat() if self.override_until else None,
            'reason': self.reason,
        })
        return data


@dataclass
class OverrideCancelled(DomainEvent):
    """Winning override cut short"""
    override_id: Optional[int] = None
    override_action: str = ''
    original_until: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'override_id': self.override_id,
            'override_action': self.override_action,
            'original_until': self.original_until.isoformat() if self.original_until else None,
        })
        return data
