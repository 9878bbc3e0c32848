"""Reservation model"""

import enum
import uuid
from datetime import timedelta

from sqlalchemy import Column, String, Integer, DateTime, Enum, Index, text

from reservation_service.database import Base, utcnow


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle states"""
    PENDING = "PENDING"
    WAITLISTED = "WAITLISTED"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


# A user holds at most one of these per restaurant when joining the waitlist
ACTIVE_STATUSES = (
    ReservationStatus.PENDING,
    ReservationStatus.WAITLISTED,
    ReservationStatus.CONFIRMED,
)

OCCUPIED_PREDICATE = "status = 'CONFIRMED' AND table_id IS NOT NULL AND checked_out_at IS NULL"
WAITLISTED_PREDICATE = "status = 'WAITLISTED'"


def _new_id() -> str:
    return str(uuid.uuid4())


class Reservation(Base):
    """Table reservations, retained for history once terminal"""
    __tablename__ = "reservations"

    id = Column(String(36), primary_key=True, default=_new_id)

    # Owner and target, issued by the identity and restaurant services
    user_id = Column(String(64), nullable=False)
    restaurant_id = Column(String(64), nullable=False)

    # Booking details
    guests = Column(Integer, nullable=False)
    reserved_at = Column(DateTime, nullable=False)
    duration_mins = Column(Integer, nullable=False, default=90)
    contact_phone = Column(String(32))

    status = Column(
        Enum(ReservationStatus, name="reservation_status"),
        nullable=False,
        default=ReservationStatus.PENDING,
    )

    # Set only while CONFIRMED
    table_id = Column(String(64))

    # Staff actions, written once
    confirmed_at = Column(DateTime)
    confirmed_by = Column(String(64))
    checked_out_at = Column(DateTime)
    checked_out_by = Column(String(64))

    # Metadata
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_reservations_restaurant_status", "restaurant_id", "status"),
        Index("ix_reservations_user_restaurant", "user_id", "restaurant_id"),
        Index("ix_reservations_status_created", "status", "created_at"),
        # At most one occupying reservation per physical table
        Index(
            "uq_reservations_occupied_table",
            "restaurant_id",
            "table_id",
            unique=True,
            postgresql_where=text(OCCUPIED_PREDICATE),
            sqlite_where=text(OCCUPIED_PREDICATE),
        ),
        # One waitlist entry per user per restaurant
        Index(
            "uq_reservations_waitlisted_user",
            "user_id",
            "restaurant_id",
            unique=True,
            postgresql_where=text(WAITLISTED_PREDICATE),
            sqlite_where=text(WAITLISTED_PREDICATE),
        ),
    )

    @property
    def ends_at(self):
        """Nominal end of the seating: checkout time if known, else start + duration"""
        if self.checked_out_at:
            return self.checked_out_at
        return self.reserved_at + timedelta(minutes=self.duration_mins or 90)

    @property
    def is_occupying(self) -> bool:
        return (
            self.status == ReservationStatus.CONFIRMED
            and self.table_id is not None
            and self.checked_out_at is None
        )

    def __repr__(self) -> str:
        return f"<Reservation(id={self.id}, restaurant={self.restaurant_id}, status={self.status})>"
