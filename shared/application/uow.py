"""
Unit of Work

One status mutation = one database transaction. Events recorded by the
aggregates touched inside it are handed to the message bus only once the
outermost transaction has committed.
"""

from typing import List, Optional
import logging

from django.conf import settings
from django.db import transaction

from shared.domain.base import Aggregate, DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    """
    ``transaction.atomic()`` plus deferred event publishing

    On PostgreSQL every statement in the block is bounded by
    ``GARAGE_STATUS_MUTATION_TIMEOUT_MS`` so a request waiting on another
    admin's row lock fails instead of hanging.

    Usage:
        with DjangoUnitOfWork() as uow:
            status = status_repo.get(garage_id, lock=True)
            status.change(...)
            status_repo.save(status)
            uow.collect_events(status)
    """

    def __init__(self, timeout_ms: Optional[int] = None, using: Optional[str] = None):
        if timeout_ms is None:
            timeout_ms = getattr(settings, 'GARAGE_STATUS_MUTATION_TIMEOUT_MS', 0)
        self._timeout_ms = int(timeout_ms or 0)
        self._using = using
        self._atomic = None
        self._pending: List[DomainEvent] = []

    def __enter__(self):
        self._atomic = transaction.atomic(using=self._using)
        self._atomic.__enter__()
        try:
            self._set_statement_timeout()
        except Exception as e:
            self._atomic.__exit__(type(e), e, e.__traceback__)
            raise
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self._schedule_publish()
        elif self._pending:
            logger.warning(
                f"Mutation failed with {exc_type.__name__}, "
                f"dropping {len(self._pending)} unpublished events"
            )
        self._pending = []
        return self._atomic.__exit__(exc_type, exc_val, exc_tb)

    def _set_statement_timeout(self):
        db = transaction.get_connection(self._using)
        if not self._timeout_ms or db.vendor != 'postgresql':
            return
        with db.cursor() as cursor:
            # SET LOCAL ends with the transaction
            cursor.execute(f'SET LOCAL statement_timeout = {self._timeout_ms}')

    def collect_events(self, aggregate: Aggregate):
        """Take over the events recorded on ``aggregate``"""
        events = aggregate.events
        if not events:
            return
        aggregate.clear_events()
        self._pending.extend(events)
        logger.debug(
            f"Collected {len(events)} events from {type(aggregate).__name__} "
            f"(garage {aggregate.garage_id})"
        )

    def _schedule_publish(self):
        if not self._pending:
            return
        events = list(self._pending)
        transaction.on_commit(lambda: self._publish(events), using=self._using)

    @staticmethod
    def _publish(events: List[DomainEvent]):
        from shared.application.message_bus import message_bus

        try:
            failures = message_bus.publish_events(events)
        except Exception as e:
            # Already committed; only the audit lines are lost
            logger.error(f"Publishing {len(events)} events failed: {e}", exc_info=True)
            return
        if failures:
            logger.warning(f"{failures} event deliveries failed after commit")
