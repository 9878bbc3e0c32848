"""Confirmation engine: PENDING -> CONFIRMED, optionally binding a table"""

import asyncio
from typing import Callable, Optional

import structlog
from sqlalchemy.exc import DBAPIError, IntegrityError

from reservation_service.config import settings
from reservation_service.database import utcnow
from reservation_service.models.reservation import Reservation, ReservationStatus
from reservation_service.services.errors import Conflict, NotFound, ReservationError
from reservation_service.services.leases import LeaseTimeout, TableLeases
from reservation_service.services.store import ReservationStore

logger = structlog.get_logger()

TABLE_OCCUPIED = (
    "Table is currently occupied. Please check out the existing reservation "
    "before assigning this table."
)

# serialization_failure, deadlock_detected
RETRYABLE_SQLSTATES = {"40001", "40P01"}

# sqlite3 has no SQLSTATE; a write lock lost to a concurrent transaction
RETRYABLE_SQLITE_ERRORS = {"SQLITE_BUSY"}


def is_serialization_failure(error: DBAPIError) -> bool:
    orig = error.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code in RETRYABLE_SQLSTATES:
        return True
    return getattr(orig, "sqlite_errorname", None) in RETRYABLE_SQLITE_ERRORS


class ConfirmationEngine:
    """
    confirm_with_table holds an exclusive (restaurant, table) lease for the
    whole check-and-commit and runs the transaction at SERIALIZABLE, so two
    staff members racing for one table cannot both win. The loser gets a
    Conflict and is expected to retry with another table. A partial unique
    index on occupied tables backs this up at the database level.
    """

    def __init__(
        self,
        store: ReservationStore,
        leases: TableLeases,
        clock: Callable = utcnow,
        timeout: Optional[float] = None,
    ):
        self.store = store
        self.db = store.db
        self.leases = leases
        self.clock = clock
        self.timeout = timeout if timeout is not None else settings.confirm_timeout_seconds

    async def confirm(self, reservation_id: str, actor: str) -> Reservation:
        """PENDING -> CONFIRMED without a table"""
        count = await self.store.transition(
            reservation_id,
            [ReservationStatus.PENDING],
            status=ReservationStatus.CONFIRMED,
            confirmed_at=self.clock(),
            confirmed_by=actor,
        )
        if not count:
            await self.db.rollback()
            await self._raise_missing_or_processed(reservation_id)

        await self.db.commit()
        logger.info("Reservation confirmed", reservation_id=reservation_id, actor=actor)
        return await self.store.get(reservation_id)

    async def confirm_with_table(self, reservation_id: str, table_id: str, actor: str) -> Reservation:
        """PENDING -> CONFIRMED bound to table_id, unless the table is occupied"""
        reservation = await self.store.get(reservation_id)
        if not reservation:
            raise NotFound("Reservation not found")
        restaurant_id = reservation.restaurant_id

        # The assignment transaction must start fresh to take its isolation level
        await self.db.rollback()

        try:
            await asyncio.wait_for(
                self._assign(reservation_id, restaurant_id, table_id, actor),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            await self.db.rollback()
            logger.warning(
                "Table assignment timed out",
                reservation_id=reservation_id,
                table_id=table_id,
                timeout=self.timeout,
            )
            raise Conflict("Table assignment timed out. Please retry.")

        logger.info(
            "Reservation confirmed with table",
            reservation_id=reservation_id,
            restaurant_id=restaurant_id,
            table_id=table_id,
            actor=actor,
        )
        return await self.store.get(reservation_id)

    async def _assign(self, reservation_id: str, restaurant_id: str, table_id: str, actor: str):
        try:
            async with self.leases.hold(restaurant_id, table_id, timeout=self.timeout):
                await self._commit_assignment(reservation_id, restaurant_id, table_id, actor)
        except LeaseTimeout:
            raise Conflict(TABLE_OCCUPIED)

    async def _commit_assignment(self, reservation_id: str, restaurant_id: str, table_id: str, actor: str):
        try:
            await self.db.connection(execution_options={"isolation_level": "SERIALIZABLE"})

            reservation = await self.store.get(reservation_id)
            if not reservation:
                raise NotFound("Reservation not found")
            if reservation.status != ReservationStatus.PENDING:
                raise Conflict("Reservation already processed")

            occupant = await self.store.find_occupant(
                restaurant_id, table_id, exclude_id=reservation_id
            )
            if occupant:
                raise Conflict(TABLE_OCCUPIED)

            count = await self.store.transition(
                reservation_id,
                [ReservationStatus.PENDING],
                status=ReservationStatus.CONFIRMED,
                table_id=table_id,
                confirmed_at=self.clock(),
                confirmed_by=actor,
            )
            if not count:
                raise Conflict("Reservation already processed")

            await self.db.commit()
        except ReservationError:
            await self.db.rollback()
            raise
        except IntegrityError:
            # Occupied-table unique index
            await self.db.rollback()
            raise Conflict(TABLE_OCCUPIED)
        except DBAPIError as e:
            await self.db.rollback()
            if is_serialization_failure(e):
                logger.info(
                    "Table assignment lost a serialization race",
                    reservation_id=reservation_id,
                    table_id=table_id,
                )
                raise Conflict(TABLE_OCCUPIED)
            raise

    async def _raise_missing_or_processed(self, reservation_id: str):
        if await self.store.get(reservation_id) is None:
            raise NotFound("Reservation not found")
        raise Conflict("Reservation already processed")
