"""Reservation core: store, availability, confirmation, lifecycle and listings"""

from reservation_service.services.errors import (
    ReservationError,
    InvalidArgument,
    Forbidden,
    NotFound,
    Conflict,
    DirectoryUnavailable,
)
from reservation_service.services.store import ReservationStore
from reservation_service.services.availability import AvailabilityResolver
from reservation_service.services.confirmation import ConfirmationEngine
from reservation_service.services.lifecycle import ReservationLifecycle
from reservation_service.services.waitlist import WaitlistPromoter
from reservation_service.services.queries import ReservationQueries
from reservation_service.services.leases import (
    TableLeases,
    MemoryTableLeases,
    RedisTableLeases,
    get_table_leases,
)

__all__ = [
    "ReservationError",
    "InvalidArgument",
    "Forbidden",
    "NotFound",
    "Conflict",
    "DirectoryUnavailable",
    "ReservationStore",
    "AvailabilityResolver",
    "ConfirmationEngine",
    "ReservationLifecycle",
    "WaitlistPromoter",
    "ReservationQueries",
    "TableLeases",
    "MemoryTableLeases",
    "RedisTableLeases",
    "get_table_leases",
]
