"""Waitlist promotion"""

from typing import List, Optional

import structlog

from reservation_service.models.reservation import Reservation, ReservationStatus
from reservation_service.services.store import ReservationStore

logger = structlog.get_logger()


class WaitlistPromoter:
    """
    FIFO per restaurant: the oldest WAITLISTED entry moves to PENDING. The
    promoted request's time and party size are not checked against anything;
    it simply re-enters the staff queue.
    """

    def __init__(self, store: ReservationStore):
        self.store = store

    async def promote_next(self, restaurant_id: str) -> Optional[Reservation]:
        """Promote within the caller's transaction; the caller commits"""
        lost: List[str] = []
        while True:
            candidate = await self.store.oldest_waitlisted(restaurant_id, skip=lost)
            if candidate is None:
                return None

            count = await self.store.transition(
                candidate.id,
                [ReservationStatus.WAITLISTED],
                status=ReservationStatus.PENDING,
            )
            if count:
                logger.info(
                    "Waitlisted reservation promoted",
                    reservation_id=candidate.id,
                    restaurant_id=restaurant_id,
                )
                return candidate

            # Left the waitlist between our read and write
            lost.append(candidate.id)
