"""Database models"""

from reservation_service.models.reservation import Reservation, ReservationStatus, ACTIVE_STATUSES

__all__ = [
    "Reservation",
    "ReservationStatus",
    "ACTIVE_STATUSES",
]
