#!/usr/bin/env python3
"""
Seed script to create a demo reservation history
"""

import asyncio
from datetime import datetime, timedelta


def days_ago(n: int, hour: int = 12, minute: int = 0) -> datetime:
    d = datetime.utcnow().replace(hour=hour, minute=minute, second=0, microsecond=0)
    return d - timedelta(days=n)


def days_from_now(n: int, hour: int = 12, minute: int = 0) -> datetime:
    return days_ago(-n, hour, minute)


def demo_reservations():
    """(id, user, restaurant, reserved_at, guests, status, extra fields)"""
    from reservation_service.models.reservation import ReservationStatus as S

    checked_out = [
        ("res_001", "user_cust_01", "rest_001", days_ago(10, 19), 2, "tbl_001", "user_staff_01", 12),
        ("res_002", "user_cust_02", "rest_001", days_ago(8, 20), 4, "tbl_003", "user_staff_01", 10),
        ("res_003", "user_cust_03", "rest_002", days_ago(7, 12, 30), 3, "tbl_011", "user_staff_02", 9),
        ("res_004", "user_cust_04", "rest_002", days_ago(5, 18), 2, "tbl_009", "user_staff_02", 7),
    ]
    rows = []
    for rid, user, restaurant, reserved_at, guests, table, staff, created in checked_out:
        rows.append(dict(
            id=rid, user_id=user, restaurant_id=restaurant, reserved_at=reserved_at,
            guests=guests, status=S.CONFIRMED, table_id=table,
            confirmed_at=days_ago(created - 1), confirmed_by=staff,
            checked_out_at=reserved_at + timedelta(hours=2), checked_out_by=staff,
            created_at=days_ago(created),
        ))

    # Seated today, table still occupied
    rows += [
        dict(id="res_009", user_id="user_cust_09", restaurant_id="rest_001",
             reserved_at=days_ago(0, 12), guests=2, status=S.CONFIRMED, table_id="tbl_002",
             confirmed_at=days_ago(1), confirmed_by="user_staff_01", created_at=days_ago(2)),
        dict(id="res_010", user_id="user_cust_10", restaurant_id="rest_002",
             reserved_at=days_ago(0, 13), guests=4, status=S.CONFIRMED, table_id="tbl_012",
             confirmed_at=days_ago(1), confirmed_by="user_staff_02", created_at=days_ago(2)),
    ]

    rows += [
        dict(id="res_011", user_id="user_cust_01", restaurant_id="rest_001",
             reserved_at=days_ago(15, 19), guests=4, status=S.CANCELLED, created_at=days_ago(16)),
        dict(id="res_014", user_id="user_cust_03", restaurant_id="rest_004",
             reserved_at=days_ago(10, 21), guests=10, status=S.REJECTED,
             confirmed_by="user_staff_04", created_at=days_ago(11)),
    ]

    # Fresh requests awaiting staff (created now so the reaper leaves them alone for a while)
    now = datetime.utcnow()
    rows += [
        dict(id="res_015", user_id="user_cust_01", restaurant_id="rest_001",
             reserved_at=days_from_now(1, 19), guests=2, status=S.PENDING,
             contact_phone="+94-77-200-0001", created_at=now),
        dict(id="res_016", user_id="user_cust_02", restaurant_id="rest_001",
             reserved_at=days_from_now(2, 20), guests=4, status=S.PENDING, created_at=now),
        dict(id="res_017", user_id="user_cust_03", restaurant_id="rest_002",
             reserved_at=days_from_now(1, 12, 30), guests=3, status=S.PENDING,
             duration_mins=60, created_at=now),
    ]

    rows += [
        dict(id="res_033", user_id="user_cust_04", restaurant_id="rest_001",
             reserved_at=days_from_now(1, 19), guests=2, status=S.WAITLISTED,
             created_at=now - timedelta(minutes=5)),
        dict(id="res_034", user_id="user_cust_05", restaurant_id="rest_001",
             reserved_at=days_from_now(1, 20), guests=3, status=S.WAITLISTED, created_at=now),
    ]
    return rows


async def seed_demo_data():
    """Seed demo data for development"""
    from reservation_service.database import SessionLocal, engine, Base
    from reservation_service.models.reservation import Reservation

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        created = 0
        for row in demo_reservations():
            if await db.get(Reservation, row["id"]):
                continue
            db.add(Reservation(**row))
            created += 1

        await db.commit()

    print(f"Seeded {created} reservations")
    print("  4 checked out, 2 seated, 1 cancelled, 1 rejected, 3 pending, 2 waitlisted")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
