"""Reservation listings enriched with collaborator data"""

from typing import Awaitable, Dict, Iterable, List, Optional, TypeVar

import structlog

from reservation_service.config import settings
from reservation_service.directory.base import (
    DirectoryError,
    RestaurantDirectory,
    TableDirectory,
    UserDirectory,
)
from reservation_service.models.reservation import Reservation, ReservationStatus
from reservation_service.schemas.auth import CurrentUser
from reservation_service.schemas.directory import RestaurantInfo, UserPublic
from reservation_service.schemas.reservation import (
    ConfirmedReservationResponse,
    MyReservationResponse,
    ReservationResponse,
    StaffReservationResponse,
)
from reservation_service.services.errors import Forbidden, InvalidArgument
from reservation_service.services.store import ReservationStore
from reservation_service.services.validation import day_window

logger = structlog.get_logger()

T = TypeVar("T")


def effective_phone(reservation: Reservation, customer: Optional[UserPublic]) -> Optional[str]:
    """Booking contact override first, then the account phone"""
    contact = (reservation.contact_phone or "").strip()
    if contact:
        return contact
    return customer.phone_number if customer else None


class ReservationQueries:
    """
    Read side. Directory failures only blank out the enrichment fields;
    the reservations themselves are always returned.
    """

    def __init__(
        self,
        store: ReservationStore,
        tables: TableDirectory,
        users: UserDirectory,
        restaurants: RestaurantDirectory,
    ):
        self.store = store
        self.tables = tables
        self.users = users
        self.restaurants = restaurants

    async def list_mine(self, user_id: str) -> List[MyReservationResponse]:
        reservations = await self.store.list_for_user(user_id)
        if not reservations:
            return []

        restaurants = await self._restaurant_map()
        table_numbers: Dict[str, str] = {}
        for restaurant_id in sorted({r.restaurant_id for r in reservations if r.table_id}):
            table_numbers.update(await self._table_numbers(restaurant_id))

        return [
            MyReservationResponse(
                **_base(r),
                restaurant=restaurants.get(r.restaurant_id),
                table_number=table_numbers.get(r.table_id) if r.table_id else None,
            )
            for r in reservations
        ]

    async def list_for_staff(
        self,
        status: Optional[str] = None,
        restaurant_id: Optional[str] = None,
    ) -> List[StaffReservationResponse]:
        reservations = await self.store.list_filtered(
            status=_parse_status(status),
            restaurant_id=restaurant_id,
        )
        if not reservations:
            return []

        restaurants = await self._restaurant_map()
        customers = await self._customer_map(r.user_id for r in reservations)

        results = []
        for r in reservations:
            customer = customers.get(r.user_id)
            results.append(
                StaffReservationResponse(
                    **_base(r),
                    restaurant=restaurants.get(r.restaurant_id),
                    customer=customer,
                    effective_phone=effective_phone(r, customer),
                )
            )
        return results

    async def list_confirmed(
        self,
        user: CurrentUser,
        date: Optional[str],
        time: Optional[str] = None,
        restaurant_id: Optional[str] = None,
        table_number: Optional[str] = None,
    ) -> List[ConfirmedReservationResponse]:
        """Confirmed reservations of one restaurant on one local day"""
        if user.has_role("STAFF"):
            # Staff only ever see their own restaurant
            if not user.restaurant_id:
                raise Forbidden("Staff user is not assigned to a restaurant")
            restaurant_id = user.restaurant_id
        if not restaurant_id:
            raise InvalidArgument("restaurantId is required for ADMIN")

        start, end = day_window(date, time, settings.app_tz_offset)
        reservations = await self.store.list_confirmed_between(restaurant_id, start, end)
        if not reservations:
            return []

        customers = await self._customer_map(r.user_id for r in reservations)
        table_numbers: Dict[str, str] = {}
        if any(r.table_id for r in reservations):
            table_numbers = await self._table_numbers(restaurant_id)

        results = []
        for r in reservations:
            customer = customers.get(r.user_id)
            results.append(
                ConfirmedReservationResponse(
                    **_base(r),
                    customer=customer,
                    effective_phone=effective_phone(r, customer),
                    table_number=table_numbers.get(r.table_id) if r.table_id else None,
                )
            )

        if table_number and table_number.strip():
            wanted = table_number.strip().lower()
            results = [x for x in results if (x.table_number or "").lower() == wanted]
        return results

    async def _restaurant_map(self) -> Dict[str, RestaurantInfo]:
        restaurants = await self._safely("restaurant", self.restaurants.list(), [])
        return {r.id: r for r in restaurants}

    async def _customer_map(self, user_ids: Iterable[str]) -> Dict[str, UserPublic]:
        ids = sorted(set(user_ids))
        users = await self._safely("identity", self.users.lookup(ids), [])
        return {u.id: u for u in users}

    async def _table_numbers(self, restaurant_id: str) -> Dict[str, str]:
        tables = await self._safely("table", self.tables.list(restaurant_id), [])
        return {t.id: t.table_number for t in tables}

    async def _safely(self, directory: str, call: Awaitable[T], default: T) -> T:
        try:
            return await call
        except DirectoryError as e:
            logger.warning("Directory lookup failed", directory=directory, error=str(e))
            return default


def _base(reservation: Reservation) -> dict:
    return ReservationResponse.model_validate(reservation).model_dump()


def _parse_status(status: Optional[str]) -> Optional[ReservationStatus]:
    if not status:
        return None
    try:
        return ReservationStatus(status.upper())
    except ValueError:
        raise InvalidArgument(f"Unknown status: {status}")
