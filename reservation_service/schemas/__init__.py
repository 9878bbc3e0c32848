"""Pydantic schemas for request/response validation"""

from reservation_service.schemas.auth import (
    TokenPayload,
    CurrentUser,
)
from reservation_service.schemas.directory import (
    TableInfo,
    UserPublic,
    RestaurantInfo,
)
from reservation_service.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    WaitlistJoin,
    ConfirmRequest,
    ConfirmWithTableRequest,
    ReservationResponse,
    MyReservationResponse,
    StaffReservationResponse,
    ConfirmedReservationResponse,
)

__all__ = [
    "TokenPayload",
    "CurrentUser",
    "TableInfo",
    "UserPublic",
    "RestaurantInfo",
    "ReservationCreate",
    "ReservationUpdate",
    "WaitlistJoin",
    "ConfirmRequest",
    "ConfirmWithTableRequest",
    "ReservationResponse",
    "MyReservationResponse",
    "StaffReservationResponse",
    "ConfirmedReservationResponse",
]
