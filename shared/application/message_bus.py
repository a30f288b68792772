"""
Message Bus

Fans committed domain events out to subscribers. Subscribers are looked up
along the event's class hierarchy, so a handler registered for
``DomainEvent`` receives every event.
"""

from typing import Callable, Dict, Iterable, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class MessageBus:
    """In-process event dispatcher (1:N)"""

    def __init__(self):
        self._subscribers: Dict[Type[DomainEvent], List[EventHandler]] = {}

    def register_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        """
        Subscribe ``handler`` to ``event_type`` and its subclasses

        Subscribing twice is a no-op; ``AppConfig.ready()`` can run more
        than once under the test runner.
        """
        subscribers = self._subscribers.setdefault(event_type, [])
        if handler not in subscribers:
            subscribers.append(handler)
            logger.debug(f"{getattr(handler, '__name__', handler)!s} subscribed to {event_type.__name__}")

    def handlers_for(self, event_type: Type[DomainEvent]) -> List[EventHandler]:
        found: List[EventHandler] = []
        for klass in event_type.__mro__:
            for handler in self._subscribers.get(klass, []):
                if handler not in found:
                    found.append(handler)
        return found

    def publish_events(self, events: Iterable[DomainEvent]) -> int:
        """
        Deliver each event to its subscribers

        A failing subscriber is logged and skipped. Returns the number of
        failed deliveries.
        """
        failures = 0
        for event in events:
            handlers = self.handlers_for(type(event))
            if not handlers:
                logger.debug(f"Nobody listens to {type(event).__name__} (garage {event.garage_id})")
                continue

            for handler in handlers:
                try:
                    handler(event)
                except Exception as e:
                    failures += 1
                    logger.error(
                        f"{getattr(handler, '__name__', handler)!s} failed on "
                        f"{type(event).__name__} {event.event_id}: {e}",
                        exc_info=True,
                    )
        return failures


message_bus = MessageBus()
