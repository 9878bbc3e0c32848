"""Reservation schemas"""

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field, field_serializer
from pydantic.alias_generators import to_camel

from reservation_service.models.reservation import ReservationStatus
from reservation_service.schemas.directory import RestaurantInfo, UserPublic


class APIModel(BaseModel):
    """Base for request/response bodies (camelCase JSON)"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class ReservationCreate(APIModel):
    """Create reservation request"""
    restaurant_id: str
    guests: int = Field(ge=1)
    reserved_at: str  # ISO 8601, validated against the booking window
    contact_phone: Optional[str] = None


class ReservationUpdate(APIModel):
    """Update a PENDING reservation"""
    reserved_at: Optional[str] = None
    guests: Optional[int] = Field(default=None, ge=1)
    contact_phone: Optional[str] = None


class WaitlistJoin(APIModel):
    """Join the waitlist for a restaurant"""
    restaurant_id: str
    guests: int = Field(ge=1)
    reserved_at: str
    contact_phone: Optional[str] = None


class ConfirmRequest(APIModel):
    """Optional table assignment on confirm"""
    table_id: Optional[str] = None


class ConfirmWithTableRequest(APIModel):
    """Mandatory table assignment"""
    table_id: str = Field(min_length=1)


class ReservationResponse(APIModel):
    """Reservation response"""
    id: str
    user_id: str
    restaurant_id: str
    guests: int
    reserved_at: datetime
    duration_mins: int
    ends_at: datetime
    status: ReservationStatus
    table_id: Optional[str] = None
    contact_phone: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    confirmed_by: Optional[str] = None
    checked_out_at: Optional[datetime] = None
    checked_out_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_serializer(
        "reserved_at", "ends_at", "confirmed_at", "checked_out_at", "created_at", "updated_at"
    )
    def serialize_utc(self, value: Optional[datetime]) -> Optional[datetime]:
        """Stored naive UTC; rendered with an explicit UTC offset"""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class MyReservationResponse(ReservationResponse):
    """Customer's own reservation with display data"""
    restaurant: Optional[RestaurantInfo] = None
    table_number: Optional[str] = None


class StaffReservationResponse(ReservationResponse):
    """Staff listing entry"""
    restaurant: Optional[RestaurantInfo] = None
    customer: Optional[UserPublic] = None
    effective_phone: Optional[str] = None


class ConfirmedReservationResponse(ReservationResponse):
    """Confirmed-by-date listing entry"""
    customer: Optional[UserPublic] = None
    effective_phone: Optional[str] = None
    table_number: Optional[str] = None
