"""Reservation store: reads and guarded writes over the reservations table"""

from datetime import datetime
from typing import Iterable, List, Optional, Set

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from reservation_service.database import utcnow
from reservation_service.models.reservation import (
    Reservation,
    ReservationStatus,
    ACTIVE_STATUSES,
)


class ReservationStore:
    """
    Every mutation here is a conditional UPDATE: it only applies while the row
    still has one of the expected statuses, and reports how many rows changed.
    Callers treat zero as "somebody else got there first".
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, reservation_id: str) -> Optional[Reservation]:
        result = await self.db.execute(
            select(Reservation)
            .where(Reservation.id == reservation_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def add(self, reservation: Reservation) -> Reservation:
        self.db.add(reservation)
        await self.db.flush()
        return reservation

    async def transition(
        self,
        reservation_id: str,
        expected: Iterable[ReservationStatus],
        *criteria,
        **values,
    ) -> int:
        """UPDATE ... WHERE id = :id AND status IN (:expected) [AND criteria]"""
        values.setdefault("updated_at", utcnow())
        result = await self.db.execute(
            update(Reservation)
            .where(
                Reservation.id == reservation_id,
                Reservation.status.in_(list(expected)),
                *criteria,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def find_occupant(
        self,
        restaurant_id: str,
        table_id: str,
        exclude_id: Optional[str] = None,
    ) -> Optional[Reservation]:
        """The confirmed, not-checked-out reservation holding a table, if any"""
        query = select(Reservation).where(
            Reservation.restaurant_id == restaurant_id,
            Reservation.table_id == table_id,
            Reservation.status == ReservationStatus.CONFIRMED,
            Reservation.checked_out_at.is_(None),
        )
        if exclude_id:
            query = query.where(Reservation.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def occupied_table_ids(self, restaurant_id: str) -> Set[str]:
        result = await self.db.execute(
            select(Reservation.table_id).where(
                Reservation.restaurant_id == restaurant_id,
                Reservation.status == ReservationStatus.CONFIRMED,
                Reservation.table_id.is_not(None),
                Reservation.checked_out_at.is_(None),
            )
        )
        return {table_id for table_id in result.scalars().all() if table_id}

    async def oldest_waitlisted(
        self,
        restaurant_id: str,
        skip: Iterable[str] = (),
    ) -> Optional[Reservation]:
        query = select(Reservation).where(
            Reservation.restaurant_id == restaurant_id,
            Reservation.status == ReservationStatus.WAITLISTED,
        )
        skip = list(skip)
        if skip:
            query = query.where(Reservation.id.not_in(skip))
        result = await self.db.execute(
            query.order_by(Reservation.created_at.asc(), Reservation.id.asc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def has_active(self, user_id: str, restaurant_id: str) -> bool:
        result = await self.db.execute(
            select(Reservation.id)
            .where(
                Reservation.user_id == user_id,
                Reservation.restaurant_id == restaurant_id,
                Reservation.status.in_(list(ACTIVE_STATUSES)),
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def expire_pending(self, cutoff: datetime) -> int:
        """Bulk PENDING -> CANCELLED for rows created before cutoff"""
        result = await self.db.execute(
            update(Reservation)
            .where(
                Reservation.status == ReservationStatus.PENDING,
                Reservation.created_at < cutoff,
            )
            .values(status=ReservationStatus.CANCELLED, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def list_for_user(self, user_id: str) -> List[Reservation]:
        result = await self.db.execute(
            select(Reservation)
            .where(Reservation.user_id == user_id)
            .order_by(Reservation.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_filtered(
        self,
        status: Optional[ReservationStatus] = None,
        restaurant_id: Optional[str] = None,
    ) -> List[Reservation]:
        query = select(Reservation)
        if status:
            query = query.where(Reservation.status == status)
        if restaurant_id:
            query = query.where(Reservation.restaurant_id == restaurant_id)
        result = await self.db.execute(query.order_by(Reservation.created_at.desc()))
        return list(result.scalars().all())

    async def list_confirmed_between(
        self,
        restaurant_id: str,
        start: datetime,
        end: datetime,
    ) -> List[Reservation]:
        result = await self.db.execute(
            select(Reservation)
            .where(
                Reservation.status == ReservationStatus.CONFIRMED,
                Reservation.restaurant_id == restaurant_id,
                Reservation.reserved_at >= start,
                Reservation.reserved_at <= end,
            )
            .order_by(Reservation.reserved_at.asc())
        )
        return list(result.scalars().all())
