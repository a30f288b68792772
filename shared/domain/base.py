"""
Domain building blocks

- ValueObject: frozen, compared field by field
- Aggregate: per-garage consistency boundary that records events
- DomainEvent: fact published once its transaction has committed
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID, uuid4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ValueObject:
    """Marker base for immutable values without identity"""


@dataclass
class Aggregate:
    """
    Aggregate root keyed by garage

    Mutators append events with ``add_event``; ``DjangoUnitOfWork`` takes
    them over and publishes them after commit.
    """
    garage_id: int
    _events: List['DomainEvent'] = field(default_factory=list, repr=False, init=False, compare=False)

    def add_event(self, event: 'DomainEvent'):
        self._events.append(event)

    def clear_events(self):
        self._events.clear()

    @property
    def events(self) -> List['DomainEvent']:
        return list(self._events)


@dataclass
class DomainEvent:
    """
    Something that happened to one garage

    ``actor_id`` is the admin who caused it, None for system actions.
    """
    garage_id: int = 0
    actor_id: Optional[int] = None
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict:
        return {
            'event_id': str(self.event_id),
            'event_type': type(self).__name__,
            'occurred_at': self.occurred_at.isoformat(),
            'garage_id': self.garage_id,
            'actor_id': self.actor_id,
        }
