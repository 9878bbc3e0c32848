"""Availability resolver"""

from typing import List, Optional

import structlog

from reservation_service.directory.base import DirectoryError, TableDirectory
from reservation_service.schemas.directory import TableInfo
from reservation_service.services.errors import DirectoryUnavailable, InvalidArgument
from reservation_service.services.store import ReservationStore
from reservation_service.services.validation import parse_instant

logger = structlog.get_logger()


class AvailabilityResolver:
    """
    Tables that could seat the party and are not held by an unfinished
    confirmed reservation. A snapshot only: nothing is locked, and a table
    listed here can still be taken by a concurrent confirmation.

    Occupancy is not compared against the requested time. Any confirmed,
    not-checked-out reservation blocks its table for every query.
    """

    def __init__(self, store: ReservationStore, tables: TableDirectory):
        self.store = store
        self.tables = tables

    async def available_tables(
        self,
        restaurant_id: str,
        guests: int,
        reserved_at: str,
        duration_mins: Optional[int] = None,
    ) -> List[TableInfo]:
        parse_instant(reserved_at)
        if guests < 1:
            raise InvalidArgument("guests must be at least 1")

        try:
            tables = await self.tables.list(restaurant_id)
        except DirectoryError as e:
            logger.warning("Table directory unavailable", restaurant_id=restaurant_id, error=str(e))
            raise DirectoryUnavailable("Table service is unavailable")

        candidates = [t for t in tables if t.is_active and t.capacity >= guests]
        if not candidates:
            return []

        blocked = await self.store.occupied_table_ids(restaurant_id)
        return [t for t in candidates if t.id not in blocked]
