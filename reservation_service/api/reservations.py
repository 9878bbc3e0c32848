"""Reservation API endpoints"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from reservation_service.config import settings
from reservation_service.database import get_db
from reservation_service.directory import (
    HttpRestaurantDirectory,
    HttpTableDirectory,
    HttpUserDirectory,
    RestaurantDirectory,
    TableDirectory,
    UserDirectory,
)
from reservation_service.schemas.auth import CurrentUser
from reservation_service.schemas.directory import TableInfo
from reservation_service.schemas.reservation import (
    ConfirmedReservationResponse,
    ConfirmRequest,
    ConfirmWithTableRequest,
    MyReservationResponse,
    ReservationCreate,
    ReservationResponse,
    ReservationUpdate,
    StaffReservationResponse,
    WaitlistJoin,
)
from reservation_service.services import (
    AvailabilityResolver,
    ConfirmationEngine,
    ReservationLifecycle,
    ReservationQueries,
    ReservationStore,
    TableLeases,
    get_table_leases,
)
from reservation_service.api.auth import get_current_user, require_role

router = APIRouter()

staff_only = require_role("STAFF", "ADMIN")


def _forwarded_headers(request: Request) -> Dict[str, str]:
    """Caller's token and correlation id, passed on to the collaborators"""
    headers = {}
    authorization = request.headers.get("authorization")
    if authorization:
        headers["authorization"] = authorization
    correlation_id = getattr(request.state, "correlation_id", None)
    if correlation_id:
        headers["x-correlation-id"] = correlation_id
    return headers


def get_table_directory(request: Request) -> TableDirectory:
    return HttpTableDirectory(settings.table_service_url, headers=_forwarded_headers(request))


def get_user_directory(request: Request) -> UserDirectory:
    return HttpUserDirectory(settings.identity_service_url, headers=_forwarded_headers(request))


def get_restaurant_directory(request: Request) -> RestaurantDirectory:
    return HttpRestaurantDirectory(settings.restaurant_service_url, headers=_forwarded_headers(request))


def get_lifecycle(db: AsyncSession = Depends(get_db)) -> ReservationLifecycle:
    return ReservationLifecycle(ReservationStore(db))


def get_confirmation_engine(
    db: AsyncSession = Depends(get_db),
    leases: TableLeases = Depends(get_table_leases),
) -> ConfirmationEngine:
    return ConfirmationEngine(ReservationStore(db), leases)


def get_availability_resolver(
    db: AsyncSession = Depends(get_db),
    tables: TableDirectory = Depends(get_table_directory),
) -> AvailabilityResolver:
    return AvailabilityResolver(ReservationStore(db), tables)


def get_queries(
    db: AsyncSession = Depends(get_db),
    tables: TableDirectory = Depends(get_table_directory),
    users: UserDirectory = Depends(get_user_directory),
    restaurants: RestaurantDirectory = Depends(get_restaurant_directory),
) -> ReservationQueries:
    return ReservationQueries(ReservationStore(db), tables, users, restaurants)


@router.post("", response_model=ReservationResponse, status_code=201)
async def create_reservation(
    data: ReservationCreate,
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
):
    """Create a PENDING reservation (customer)"""
    return await lifecycle.create(current_user.user_id, data)


@router.get("/me", response_model=List[MyReservationResponse])
async def list_my_reservations(
    current_user: CurrentUser = Depends(get_current_user),
    queries: ReservationQueries = Depends(get_queries),
):
    """List the caller's reservations, newest first"""
    return await queries.list_mine(current_user.user_id)


@router.get("/availability", response_model=List[TableInfo])
async def check_availability(
    restaurant_id: str = Query(..., alias="restaurantId"),
    guests: int = Query(..., ge=1),
    reserved_at: str = Query(..., alias="reservedAt"),
    duration_mins: Optional[int] = Query(None, alias="durationMins", ge=15),
    current_user: CurrentUser = Depends(get_current_user),
    resolver: AvailabilityResolver = Depends(get_availability_resolver),
):
    """Tables that can seat the party and are not currently occupied"""
    return await resolver.available_tables(restaurant_id, guests, reserved_at, duration_mins)


@router.get("", response_model=List[StaffReservationResponse])
async def list_reservations(
    status: Optional[str] = None,
    restaurant_id: Optional[str] = Query(None, alias="restaurantId"),
    current_user: CurrentUser = Depends(staff_only),
    queries: ReservationQueries = Depends(get_queries),
):
    """List reservations with customer and restaurant details (staff/admin)"""
    return await queries.list_for_staff(status=status, restaurant_id=restaurant_id)


@router.get("/confirmed", response_model=List[ConfirmedReservationResponse])
async def list_confirmed_reservations(
    date: Optional[str] = None,
    time: Optional[str] = None,
    restaurant_id: Optional[str] = Query(None, alias="restaurantId"),
    table_number: Optional[str] = Query(None, alias="tableNumber"),
    current_user: CurrentUser = Depends(staff_only),
    queries: ReservationQueries = Depends(get_queries),
):
    """Confirmed reservations for a date, with customer and table number (staff/admin)"""
    return await queries.list_confirmed(
        current_user,
        date=date,
        time=time,
        restaurant_id=restaurant_id,
        table_number=table_number,
    )


@router.post("/waitlist", response_model=ReservationResponse, status_code=201)
async def join_waitlist(
    data: WaitlistJoin,
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
):
    """Join the waitlist for a restaurant (customer)"""
    return await lifecycle.join_waitlist(current_user.user_id, data)


@router.patch("/{reservation_id}/waitlist/leave", response_model=ReservationResponse)
async def leave_waitlist(
    reservation_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
):
    """Leave the waitlist (owner)"""
    return await lifecycle.leave_waitlist(current_user.user_id, reservation_id)


@router.patch("/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_reservation(
    reservation_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
):
    """Cancel a PENDING or WAITLISTED reservation (owner)"""
    return await lifecycle.cancel(current_user.user_id, reservation_id)


@router.patch("/{reservation_id}/confirm", response_model=ReservationResponse)
async def confirm_reservation(
    reservation_id: str,
    data: Optional[ConfirmRequest] = None,
    current_user: CurrentUser = Depends(staff_only),
    engine: ConfirmationEngine = Depends(get_confirmation_engine),
):
    """Confirm a reservation, assigning a table when tableId is given (staff/admin)"""
    if data and data.table_id:
        return await engine.confirm_with_table(reservation_id, data.table_id, current_user.user_id)
    return await engine.confirm(reservation_id, current_user.user_id)


@router.patch("/{reservation_id}/confirm-with-table", response_model=ReservationResponse)
async def confirm_with_table(
    reservation_id: str,
    data: ConfirmWithTableRequest,
    current_user: CurrentUser = Depends(staff_only),
    engine: ConfirmationEngine = Depends(get_confirmation_engine),
):
    """Confirm a reservation and assign a table (staff/admin)"""
    return await engine.confirm_with_table(reservation_id, data.table_id, current_user.user_id)


@router.patch("/{reservation_id}/reject", response_model=ReservationResponse)
async def reject_reservation(
    reservation_id: str,
    current_user: CurrentUser = Depends(staff_only),
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
):
    """Reject a PENDING reservation (staff/admin)"""
    return await lifecycle.reject(reservation_id, current_user.user_id)


@router.patch("/{reservation_id}/checkout", response_model=ReservationResponse)
async def checkout_reservation(
    reservation_id: str,
    current_user: CurrentUser = Depends(staff_only),
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
):
    """Check out a seated reservation, freeing its table (staff/admin)"""
    return await lifecycle.checkout(reservation_id, current_user.user_id)


@router.patch("/{reservation_id}", response_model=ReservationResponse)
async def update_reservation(
    reservation_id: str,
    data: ReservationUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: ReservationLifecycle = Depends(get_lifecycle),
):
    """Change time, guests or contact phone of a PENDING reservation (owner)"""
    return await lifecycle.update(current_user.user_id, reservation_id, data)
