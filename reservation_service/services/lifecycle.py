"""Reservation lifecycle: create, update, cancel, reject, checkout, waitlist"""

from typing import Callable

import structlog
from sqlalchemy.exc import IntegrityError

from reservation_service.config import settings
from reservation_service.database import utcnow
from reservation_service.models.reservation import Reservation, ReservationStatus
from reservation_service.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    WaitlistJoin,
)
from reservation_service.services.errors import Conflict, Forbidden, NotFound
from reservation_service.services.store import ReservationStore
from reservation_service.services.validation import normalize_phone, parse_bookable
from reservation_service.services.waitlist import WaitlistPromoter

logger = structlog.get_logger()

ALREADY_ENGAGED = "You already have an active or waitlisted reservation at this restaurant"


class ReservationLifecycle:
    """Guarded state transitions other than confirmation"""

    def __init__(self, store: ReservationStore, clock: Callable = utcnow):
        self.store = store
        self.db = store.db
        self.clock = clock
        self.promoter = WaitlistPromoter(store)

    async def create(self, user_id: str, data: ReservationCreate) -> Reservation:
        reserved_at = parse_bookable(data.reserved_at, self.clock())

        reservation = await self.store.add(
            Reservation(
                user_id=user_id,
                restaurant_id=data.restaurant_id,
                guests=data.guests,
                reserved_at=reserved_at,
                duration_mins=settings.default_duration_mins,
                contact_phone=normalize_phone(data.contact_phone),
                status=ReservationStatus.PENDING,
                created_at=self.clock(),
            )
        )
        await self.db.commit()

        logger.info(
            "Reservation created",
            reservation_id=reservation.id,
            restaurant_id=reservation.restaurant_id,
            guests=reservation.guests,
        )
        return reservation

    async def update(self, user_id: str, reservation_id: str, data: ReservationUpdate) -> Reservation:
        """Change time, guests or contact phone of the caller's PENDING reservation"""
        reservation = await self._owned(user_id, reservation_id)
        if reservation.status != ReservationStatus.PENDING:
            raise Conflict("Only PENDING reservations can be modified")

        fields = data.model_dump(exclude_unset=True)
        values = {}
        if fields.get("reserved_at") is not None:
            values["reserved_at"] = parse_bookable(fields["reserved_at"], self.clock())
        if fields.get("guests") is not None:
            values["guests"] = fields["guests"]
        if "contact_phone" in fields:
            values["contact_phone"] = normalize_phone(fields["contact_phone"])

        if values:
            count = await self.store.transition(
                reservation_id, [ReservationStatus.PENDING], **values
            )
            if not count:
                await self.db.rollback()
                raise Conflict("Only PENDING reservations can be modified")
            await self.db.commit()
            logger.info("Reservation updated", reservation_id=reservation_id, fields=sorted(values))

        return await self.store.get(reservation_id)

    async def cancel(self, user_id: str, reservation_id: str) -> Reservation:
        """
        Customer cancellation from PENDING or WAITLISTED. Cancelling a PENDING
        reservation promotes the oldest waitlisted entry at the same restaurant.
        """
        reservation = await self._owned(user_id, reservation_id)
        previous = reservation.status
        cancellable = [ReservationStatus.PENDING, ReservationStatus.WAITLISTED]
        if previous not in cancellable:
            raise Conflict("Only PENDING or WAITLISTED reservations can be cancelled")

        count = await self.store.transition(
            reservation_id, [previous], status=ReservationStatus.CANCELLED
        )
        if not count:
            await self.db.rollback()
            raise Conflict("Only PENDING or WAITLISTED reservations can be cancelled")

        if previous == ReservationStatus.PENDING:
            await self.promoter.promote_next(reservation.restaurant_id)

        await self.db.commit()
        logger.info("Reservation cancelled", reservation_id=reservation_id, previous=previous.value)
        return await self.store.get(reservation_id)

    async def reject(self, reservation_id: str, actor: str) -> Reservation:
        """PENDING -> REJECTED; the acting staff member is kept in confirmed_by"""
        count = await self.store.transition(
            reservation_id,
            [ReservationStatus.PENDING],
            status=ReservationStatus.REJECTED,
            confirmed_by=actor,
        )
        if not count:
            await self.db.rollback()
            await self._raise_missing_or(reservation_id, "Reservation already processed")

        await self.db.commit()
        logger.info("Reservation rejected", reservation_id=reservation_id, actor=actor)
        return await self.store.get(reservation_id)

    async def checkout(self, reservation_id: str, actor: str) -> Reservation:
        """Release the table of a confirmed reservation"""
        reservation = await self.store.get(reservation_id)
        if not reservation:
            raise NotFound("Reservation not found")
        if reservation.status != ReservationStatus.CONFIRMED:
            raise Conflict("Only CONFIRMED reservations can be checked out")
        if not reservation.table_id:
            raise Conflict("Reservation has no table assigned")
        if reservation.checked_out_at:
            raise Conflict("Reservation already checked out")

        count = await self.store.transition(
            reservation_id,
            [ReservationStatus.CONFIRMED],
            Reservation.table_id.is_not(None),
            Reservation.checked_out_at.is_(None),
            checked_out_at=self.clock(),
            checked_out_by=actor,
        )
        if not count:
            await self.db.rollback()
            raise Conflict("Reservation already checked out")

        await self.db.commit()
        logger.info(
            "Reservation checked out",
            reservation_id=reservation_id,
            table_id=reservation.table_id,
            actor=actor,
        )
        return await self.store.get(reservation_id)

    async def join_waitlist(self, user_id: str, data: WaitlistJoin) -> Reservation:
        """One active engagement (PENDING, WAITLISTED or CONFIRMED) per user per restaurant"""
        reserved_at = parse_bookable(data.reserved_at, self.clock())

        if await self.store.has_active(user_id, data.restaurant_id):
            raise Conflict(ALREADY_ENGAGED)

        try:
            reservation = await self.store.add(
                Reservation(
                    user_id=user_id,
                    restaurant_id=data.restaurant_id,
                    guests=data.guests,
                    reserved_at=reserved_at,
                    duration_mins=settings.default_duration_mins,
                    contact_phone=normalize_phone(data.contact_phone),
                    status=ReservationStatus.WAITLISTED,
                    created_at=self.clock(),
                )
            )
            await self.db.commit()
        except IntegrityError:
            # Concurrent join won the waitlisted-user unique index
            await self.db.rollback()
            raise Conflict(ALREADY_ENGAGED)

        logger.info(
            "Joined waitlist",
            reservation_id=reservation.id,
            restaurant_id=reservation.restaurant_id,
        )
        return reservation

    async def leave_waitlist(self, user_id: str, reservation_id: str) -> Reservation:
        reservation = await self._owned(user_id, reservation_id)
        if reservation.status != ReservationStatus.WAITLISTED:
            raise Conflict("Reservation is not on the waitlist")

        count = await self.store.transition(
            reservation_id,
            [ReservationStatus.WAITLISTED],
            status=ReservationStatus.CANCELLED,
        )
        if not count:
            await self.db.rollback()
            raise Conflict("Reservation is not on the waitlist")

        await self.db.commit()
        logger.info("Left waitlist", reservation_id=reservation_id)
        return await self.store.get(reservation_id)

    async def _owned(self, user_id: str, reservation_id: str) -> Reservation:
        reservation = await self.store.get(reservation_id)
        if not reservation:
            raise NotFound("Reservation not found")
        if reservation.user_id != user_id:
            raise Forbidden("Not your reservation")
        return reservation

    async def _raise_missing_or(self, reservation_id: str, message: str):
        if await self.store.get(reservation_id) is None:
            raise NotFound("Reservation not found")
        raise Conflict(message)
