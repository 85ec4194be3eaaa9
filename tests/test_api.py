"""HTTP surface: auth, status codes and error kinds."""

from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from growshare.api.deps import get_booking_service, get_db, get_dispute_service
from growshare.core.security import create_access_token
from growshare.main import app

API = "/api/v1"


def auth(user) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
async def client(db, bookings, disputes):
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_booking_service] = lambda: bookings
    app.dependency_overrides[get_dispute_service] = lambda: disputes
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def booking_body(plot, start="2025-06-01", end="2025-08-30", **extra):
    return {"plot_id": str(plot.id), "start_date": start, "end_date": end, **extra}


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


async def test_missing_token_is_unauthenticated(client, plot):
    response = await client.post(f"{API}/bookings/quote", json=booking_body(plot))
    assert response.status_code == 401
    assert response.json()["kind"] == "Unauthenticated"


async def test_garbage_token_is_unauthenticated(client):
    response = await client.get(f"{API}/bookings", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


async def test_quote(client, plot, renter):
    response = await client.post(
        f"{API}/bookings/quote", json=booking_body(plot), headers=auth(renter)
    )
    assert response.status_code == 200
    body = response.json()
    assert body["duration_months"] == 3
    assert Decimal(body["total_amount"]) == Decimal("450")
    assert body["initial_status"] == "PENDING"


async def test_create_then_overlap_conflicts(client, plot, renter, other_renter):
    response = await client.post(
        f"{API}/bookings",
        json=booking_body(plot, message="Tomatoes and squash"),
        headers=auth(renter),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "PENDING"
    assert body["plot_title"] == "Sunny Acre"
    assert body["renter_name"] == "Rita User"

    response = await client.post(
        f"{API}/bookings",
        json=booking_body(plot, start="2025-08-30", end="2025-10-01"),
        headers=auth(other_renter),
    )
    assert response.status_code == 409
    assert response.json()["kind"] == "Conflict"


async def test_past_start_is_validation_error(client, plot, renter):
    response = await client.post(
        f"{API}/bookings",
        json=booking_body(plot, start="2025-04-01", end="2025-06-01"),
        headers=auth(renter),
    )
    assert response.status_code == 422
    assert response.json()["kind"] == "ValidationError"


async def test_short_lease_is_policy_violation(client, db, owner, renter):
    from tests.conftest import make_plot

    plot = await make_plot(db, owner, minimum_lease=6, title="Long Haul")
    response = await client.post(f"{API}/bookings", json=booking_body(plot), headers=auth(renter))
    assert response.status_code == 422
    assert response.json()["kind"] == "PolicyViolation"


async def test_missing_field_is_validation_error(client, renter):
    response = await client.post(
        f"{API}/bookings", json={"start_date": "2025-06-01"}, headers=auth(renter)
    )
    assert response.status_code == 422
    assert response.json()["kind"] == "ValidationError"


async def test_owner_approves_over_http(client, dispatcher, plot, owner, renter, other_renter):
    created = await client.post(f"{API}/bookings", json=booking_body(plot), headers=auth(renter))
    booking_id = created.json()["id"]

    response = await client.patch(
        f"{API}/bookings/{booking_id}", json={"status": "BOGUS"}, headers=auth(owner)
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "InvalidOperation"

    response = await client.get(f"{API}/bookings/{booking_id}", headers=auth(other_renter))
    assert response.status_code == 403
    assert response.json()["kind"] == "Forbidden"

    response = await client.patch(
        f"{API}/bookings/{booking_id}", json={"status": "APPROVED"}, headers=auth(renter)
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "InvalidOperation"

    response = await client.patch(
        f"{API}/bookings/{booking_id}", json={"status": "APPROVED"}, headers=auth(owner)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "APPROVED"
    assert dispatcher.types_for(renter.id)[-1] == "BOOKING_APPROVED"

    listed = await client.get(
        f"{API}/bookings", params={"role": "owner", "status": "APPROVED"}, headers=auth(owner)
    )
    assert listed.json()["total"] == 1


async def test_unknown_booking_is_not_found(client, renter):
    response = await client.get(f"{API}/bookings/{uuid4()}", headers=auth(renter))
    assert response.status_code == 404
    assert response.json()["kind"] == "NotFound"


async def test_dispute_flow_over_http(client, plot, owner, renter, admin):
    created = await client.post(f"{API}/bookings", json=booking_body(plot), headers=auth(renter))
    booking_id = created.json()["id"]

    response = await client.post(
        f"{API}/bookings/{booking_id}/dispute",
        json={"reason": "ACCESS_ISSUES", "description": "Gate locked", "requested_amount": "50"},
        headers=auth(renter),
    )
    assert response.status_code == 201
    dispute_id = response.json()["id"]

    note = await client.post(
        f"{API}/disputes/{dispute_id}/messages",
        json={"content": "Checking with the owner", "is_internal": True},
        headers=auth(admin),
    )
    assert note.status_code == 201
    assert note.json()["is_internal"] is True

    renter_view = await client.get(f"{API}/bookings/{booking_id}/dispute", headers=auth(renter))
    assert renter_view.status_code == 200
    assert renter_view.json()["messages"] == []

    admin_view = await client.get(f"{API}/bookings/{booking_id}/dispute", headers=auth(admin))
    assert len(admin_view.json()["messages"]) == 1

    response = await client.post(
        f"{API}/disputes/{dispute_id}/resolve",
        json={"resolution": "NO_REFUND"},
        headers=auth(owner),
    )
    assert response.status_code == 403

    response = await client.post(
        f"{API}/disputes/{dispute_id}/resolve",
        json={"resolution": "PARTIAL_REFUND", "notes": "Split", "resolved_amount": "25"},
        headers=auth(admin),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "RESOLVED"

    mine = await client.get(f"{API}/disputes", params={"role": "received"}, headers=auth(owner))
    assert mine.json()["total"] == 1


async def test_admin_dispute_queue_requires_admin(client, renter, admin):
    response = await client.get(f"{API}/admin/disputes", headers=auth(renter))
    assert response.status_code == 403

    response = await client.get(f"{API}/admin/disputes", headers=auth(admin))
    assert response.status_code == 200
    assert response.json() == {
        "disputes": [], "total": 0, "page": 1, "limit": 20, "total_pages": 0,
    }
