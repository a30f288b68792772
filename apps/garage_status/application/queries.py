"""
Status Queries

Read side of the status engine. Rows are fetched once, then each garage
is resolved in memory by the pure resolver. No locking and no caching:
every call reflects the rows as they are right now.
"""

from datetime import datetime
from typing import Dict, Iterable, Optional
import logging

from django.utils import timezone

from apps.garage_status.domain.entities import EffectiveStatus, GarageStatusRows
from apps.garage_status.domain.resolver import resolve
from apps.garage_status.repositories import GarageStatusReadRepository

logger = logging.getLogger(__name__)


class StatusResolverService:
    """
    Resolve effective status for one or many garages

    Usage:
        service = StatusResolverService()
        effective = service.resolve(garage_id)
        if not effective.is_open:
            ...reject booking...
    """

    def __init__(self, read_repo: Optional[GarageStatusReadRepository] = None):
        self.read_repo = read_repo or GarageStatusReadRepository()

    @staticmethod
    def _now(now: Optional[datetime]) -> datetime:
        now = now or timezone.now()
        if timezone.is_naive(now):
            now = timezone.make_aware(now)
        return now

    def load_rows(self, garage_ids: Iterable[int], now: Optional[datetime] = None) -> Dict[int, GarageStatusRows]:
        return self.read_repo.fetch_rows(garage_ids, self._now(now))

    def resolve_rows(self, rows: GarageStatusRows, now: Optional[datetime] = None) -> EffectiveStatus:
        return resolve(rows, self._now(now), timezone.get_current_timezone())

    def resolve(self, garage_id: int, now: Optional[datetime] = None) -> EffectiveStatus:
        """
        Effective status of a single garage

        Raises:
            NotFound: The garage's status or schedule row is missing
        """
        now = self._now(now)
        rows = self.read_repo.fetch_rows([garage_id], now)[garage_id]
        return self.resolve_rows(rows, now)

    def resolve_many(self, garage_ids: Iterable[int], now: Optional[datetime] = None) -> Dict[int, EffectiveStatus]:
        """
        Effective status of many garages in three queries

        Raises:
            NotFound: Listing every garage whose rows are missing
        """
        now = self._now(now)
        rows_by_garage = self.read_repo.fetch_rows(garage_ids, now)
        logger.debug(f"Resolving status for {len(rows_by_garage)} garages")
        return {
            garage_id: self.resolve_rows(rows, now)
            for garage_id, rows in rows_by_garage.items()
        }
