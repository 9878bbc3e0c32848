"""HTTP tests for the reservation endpoints"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from conftest import in_days, iso, make_token
from reservation_service import main
from reservation_service.jobs.reaper import ExpiryReaper
from reservation_service.models.reservation import ReservationStatus
from reservation_service.services.confirmation import TABLE_OCCUPIED


async def create(client: AsyncClient, headers, **overrides):
    body = {"restaurantId": "rest_001", "guests": 2, "reservedAt": iso(in_days(1))}
    body.update(overrides)
    return await client.post("/reservations", json=body, headers=headers)


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Correlation-ID": "req-123"})
    assert response.headers["X-Correlation-ID"] == "req-123"

    generated = await client.get("/health")
    assert generated.headers["X-Correlation-ID"]


@pytest.mark.asyncio
async def test_token_required(client: AsyncClient):
    response = await create(client, headers={})
    assert response.status_code == 401

    bogus = await create(client, headers={"Authorization": "Bearer not-a-token"})
    assert bogus.status_code == 401


@pytest.mark.asyncio
async def test_create_reservation(client: AsyncClient, customer_headers):
    response = await create(client, customer_headers, guests=4, contactPhone=" +94 77 555 0000 ")

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "PENDING"
    assert data["userId"] == "user_a"
    assert data["restaurantId"] == "rest_001"
    assert data["guests"] == 4
    assert data["tableId"] is None
    assert data["contactPhone"] == "+94 77 555 0000"
    assert data["durationMins"] == 90
    assert "endsAt" in data


@pytest.mark.asyncio
async def test_timestamps_carry_utc_offset(client: AsyncClient, customer_headers):
    local = in_days(2, hour=19)
    response = await create(client, customer_headers, reservedAt=local.isoformat() + "+05:30")

    assert response.status_code == 201
    data = response.json()
    assert data["reservedAt"].endswith(("Z", "+00:00"))
    assert data["createdAt"].endswith(("Z", "+00:00"))
    reserved_at = datetime.fromisoformat(data["reservedAt"].replace("Z", "+00:00"))
    assert reserved_at == (local - timedelta(hours=5, minutes=30)).replace(tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_create_outside_window(client: AsyncClient, customer_headers):
    response = await create(client, customer_headers, reservedAt=iso(in_days(31)))
    assert response.status_code == 400
    assert response.json()["detail"] == "Reservations can only be made within 30 days"


@pytest.mark.asyncio
async def test_create_validates_body(client: AsyncClient, customer_headers):
    response = await create(client, customer_headers, guests=0)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_customer_cannot_confirm(client: AsyncClient, customer_headers):
    created = (await create(client, customer_headers)).json()

    response = await client.patch(f"/reservations/{created['id']}/confirm", headers=customer_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_seating_flow(client: AsyncClient, customer_headers, other_customer_headers, staff_headers):
    first = (await create(client, customer_headers, guests=4)).json()
    second = (await create(client, other_customer_headers, guests=4)).json()

    seated = await client.patch(
        f"/reservations/{first['id']}/confirm-with-table",
        json={"tableId": "tbl_002"},
        headers=staff_headers,
    )
    assert seated.status_code == 200
    assert seated.json()["status"] == "CONFIRMED"
    assert seated.json()["tableId"] == "tbl_002"
    assert seated.json()["confirmedBy"] == "staff_1"

    clash = await client.patch(
        f"/reservations/{second['id']}/confirm-with-table",
        json={"tableId": "tbl_002"},
        headers=staff_headers,
    )
    assert clash.status_code == 409
    assert clash.json()["detail"] == TABLE_OCCUPIED

    params = {"restaurantId": "rest_001", "guests": 4, "reservedAt": iso(in_days(1))}
    available = await client.get("/reservations/availability", params=params, headers=customer_headers)
    assert [t["id"] for t in available.json()] == ["tbl_004"]

    checkout = await client.patch(f"/reservations/{first['id']}/checkout", headers=staff_headers)
    assert checkout.status_code == 200
    assert checkout.json()["checkedOutBy"] == "staff_1"

    again = await client.patch(f"/reservations/{first['id']}/checkout", headers=staff_headers)
    assert again.status_code == 409

    available = await client.get("/reservations/availability", params=params, headers=customer_headers)
    assert sorted(t["id"] for t in available.json()) == ["tbl_002", "tbl_004"]

    retry = await client.patch(
        f"/reservations/{second['id']}/confirm",
        json={"tableId": "tbl_002"},
        headers=staff_headers,
    )
    assert retry.status_code == 200
    assert retry.json()["tableId"] == "tbl_002"


@pytest.mark.asyncio
async def test_confirm_without_body(client: AsyncClient, customer_headers, admin_headers):
    created = (await create(client, customer_headers)).json()

    response = await client.patch(f"/reservations/{created['id']}/confirm", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "CONFIRMED"
    assert response.json()["tableId"] is None

    twice = await client.patch(f"/reservations/{created['id']}/confirm", headers=admin_headers)
    assert twice.status_code == 409


@pytest.mark.asyncio
async def test_confirm_with_table_requires_table_id(client: AsyncClient, customer_headers, staff_headers):
    created = (await create(client, customer_headers)).json()

    response = await client.patch(
        f"/reservations/{created['id']}/confirm-with-table", json={}, headers=staff_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_reject_and_unknown_id(client: AsyncClient, customer_headers, staff_headers):
    created = (await create(client, customer_headers)).json()

    rejected = await client.patch(f"/reservations/{created['id']}/reject", headers=staff_headers)
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "REJECTED"

    missing = await client.patch("/reservations/nope/reject", headers=staff_headers)
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Reservation not found"


@pytest.mark.asyncio
async def test_cancel_promotes_waitlist(
    client: AsyncClient, customer_headers, other_customer_headers, staff_headers
):
    booked = (await create(client, customer_headers)).json()
    queued = await client.post(
        "/reservations/waitlist",
        json={"restaurantId": "rest_001", "guests": 2, "reservedAt": iso(in_days(2))},
        headers=other_customer_headers,
    )
    assert queued.status_code == 201
    assert queued.json()["status"] == "WAITLISTED"

    forbidden = await client.patch(
        f"/reservations/{booked['id']}/cancel", headers=other_customer_headers
    )
    assert forbidden.status_code == 403

    cancelled = await client.patch(f"/reservations/{booked['id']}/cancel", headers=customer_headers)
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "CANCELLED"

    pending = await client.get(
        "/reservations", params={"status": "PENDING"}, headers=staff_headers
    )
    assert [r["id"] for r in pending.json()] == [queued.json()["id"]]


@pytest.mark.asyncio
async def test_waitlist_duplicate_and_leave(client: AsyncClient, customer_headers):
    body = {"restaurantId": "rest_001", "guests": 2, "reservedAt": iso(in_days(2))}

    joined = await client.post("/reservations/waitlist", json=body, headers=customer_headers)
    duplicate = await client.post("/reservations/waitlist", json=body, headers=customer_headers)
    assert duplicate.status_code == 409

    left = await client.patch(
        f"/reservations/{joined.json()['id']}/waitlist/leave", headers=customer_headers
    )
    assert left.status_code == 200
    assert left.json()["status"] == "CANCELLED"


@pytest.mark.asyncio
async def test_update_reservation(client: AsyncClient, customer_headers, other_customer_headers):
    created = (await create(client, customer_headers)).json()

    updated = await client.patch(
        f"/reservations/{created['id']}", json={"guests": 6}, headers=customer_headers
    )
    assert updated.status_code == 200
    assert updated.json()["guests"] == 6

    other = await client.patch(
        f"/reservations/{created['id']}", json={"guests": 3}, headers=other_customer_headers
    )
    assert other.status_code == 403


@pytest.mark.asyncio
async def test_my_reservations(client: AsyncClient, customer_headers, make_reservation):
    await make_reservation(status=ReservationStatus.CONFIRMED, table_id="tbl_001")
    await make_reservation(user_id="user_b")

    response = await client.get("/reservations/me", headers=customer_headers)

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["restaurant"]["name"] == "Harbour Grill"
    assert data[0]["tableNumber"] == "T1"


@pytest.mark.asyncio
async def test_staff_listing_requires_staff(client: AsyncClient, customer_headers):
    response = await client.get("/reservations", headers=customer_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_staff_listing_survives_identity_outage(
    client: AsyncClient, staff_headers, users, make_reservation
):
    await make_reservation(contact_phone="+94700000001")
    users.fail = True

    response = await client.get("/reservations", headers=staff_headers)

    assert response.status_code == 200
    data = response.json()
    assert data[0]["customer"] is None
    assert data[0]["effectivePhone"] == "+94700000001"


@pytest.mark.asyncio
async def test_confirmed_listing(client: AsyncClient, staff_headers, admin_headers, make_reservation):
    day = in_days(1, hour=12)
    booked = await make_reservation(
        status=ReservationStatus.CONFIRMED, table_id="tbl_002", reserved_at=day
    )
    params = {"date": day.date().isoformat()}

    staff = await client.get("/reservations/confirmed", params=params, headers=staff_headers)
    assert staff.status_code == 200
    assert [r["id"] for r in staff.json()] == [booked.id]
    assert staff.json()[0]["tableNumber"] == "T2"
    assert staff.json()[0]["effectivePhone"] == "+94770000001"

    admin = await client.get("/reservations/confirmed", params=params, headers=admin_headers)
    assert admin.status_code == 400

    unassigned = {"Authorization": f"Bearer {make_token('staff_9', ['STAFF'])}"}
    forbidden = await client.get("/reservations/confirmed", params=params, headers=unassigned)
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_availability_when_table_service_is_down(client: AsyncClient, customer_headers, tables):
    tables.fail = True
    params = {"restaurantId": "rest_001", "guests": 2, "reservedAt": iso(in_days(1))}

    response = await client.get("/reservations/availability", params=params, headers=customer_headers)
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_lifespan_runs_reaper_when_enabled(monkeypatch, session_factory):
    monkeypatch.setattr(main.settings, "reaper_enabled", True)
    monkeypatch.setattr(
        main, "ExpiryReaper", lambda: ExpiryReaper(session_factory=session_factory, interval_seconds=0.05)
    )

    async with main.lifespan(main.app):
        reaper = main.app.state.reaper
        assert reaper.is_running

    assert not reaper.is_running


@pytest.mark.asyncio
async def test_lifespan_skips_reaper_when_disabled(monkeypatch):
    monkeypatch.setattr(main.settings, "reaper_enabled", False)

    async with main.lifespan(main.app):
        assert main.app.state.reaper is None
