"""
Tests for the booking lifecycle: create, read, cancel and reschedule.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import inspect, select

from falconair.api.routes import bookings as booking_routes
from falconair.models import Booking, Flight
from falconair.models.enums import FlightStatus, SeatClass


@pytest.fixture
def cache_clears(monkeypatch, session_factory):
    """Seat counts visible to a separate session each time the search cache is cleared."""
    seen = []

    async def record_committed_seats():
        async with session_factory() as session:
            result = await session.execute(
                select(Flight.id, Flight.available_economy_seats, Flight.available_business_seats).order_by(Flight.id)
            )
            seen.append([tuple(row) for row in result.all()])

    monkeypatch.setattr(booking_routes, "invalidate_flight_cache", record_committed_seats)
    return seen


@pytest.mark.asyncio
async def test_create_booking(client: AsyncClient, auth_headers, make_flight, booking_payload):
    """Successful booking takes one seat of the chosen class."""
    flight = await make_flight()

    response = await client.post("/api/bookings", json=booking_payload(flight, seat_number="14c"), headers=auth_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["flight_id"] == flight.id
    assert data["booking_status"] == "confirmed"
    assert data["seat_class"] == "economy"
    assert data["seat_number"] == "14C"
    assert len(data["booking_reference"]) == 6
    assert data["total_price"] == 450.0
    assert data["flight"]["flight_number"] == "FA100"

    # Verify available seats decreased
    flight_response = await client.get(f"/api/flights/{flight.id}")
    assert flight_response.json()["available_economy_seats"] == 149
    assert flight_response.json()["available_business_seats"] == 20


@pytest.mark.asyncio
async def test_create_booking_unauthenticated(client: AsyncClient, make_flight, booking_payload):
    flight = await make_flight()
    response = await client.post("/api/bookings", json=booking_payload(flight))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_booking_class_sold_out(client: AsyncClient, auth_headers, make_flight, booking_payload):
    """No seats left in the class -> seat_unavailable, other class unaffected."""
    flight = await make_flight(business_seats=0)

    response = await client.post(
        "/api/bookings", json=booking_payload(flight, seat_class="business"), headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["code"] == "seat_unavailable"

    response = await client.post("/api/bookings", json=booking_payload(flight), headers=auth_headers)
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_create_booking_unknown_flight(client: AsyncClient, auth_headers, make_flight, booking_payload):
    flight = await make_flight()
    payload = booking_payload(flight)
    payload["flight_id"] = 9999

    response = await client.post("/api/bookings", json=payload, headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_booking_cancelled_flight(client: AsyncClient, auth_headers, make_flight, booking_payload):
    flight = await make_flight(status=FlightStatus.CANCELLED)
    response = await client.post("/api/bookings", json=booking_payload(flight), headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


@pytest.mark.asyncio
@pytest.mark.parametrize("field, value", [
    ("seat_class", "first"),
    ("seat_number", "A12"),
    ("passenger_email", "not-an-email"),
    ("total_price", -1),
])
async def test_create_booking_invalid_payload(
    client: AsyncClient, auth_headers, make_flight, booking_payload, field, value
):
    flight = await make_flight()
    payload = booking_payload(flight)
    payload[field] = value

    response = await client.post("/api/bookings", json=payload, headers=auth_headers)
    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "validation_error"
    assert data["detail"].startswith(field)


@pytest.mark.asyncio
async def test_list_bookings_includes_cancelled(
    client: AsyncClient, auth_headers, test_user, other_user, make_flight, make_booking
):
    flight = await make_flight()
    first = await make_booking(test_user, flight, seat_number="1A")
    second = await make_booking(test_user, flight, seat_number="1B")
    await make_booking(other_user, flight, seat_number="1C")

    await client.delete(f"/api/bookings/{first.id}", headers=auth_headers)

    response = await client.get("/api/bookings", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert {b["id"] for b in data} == {first.id, second.id}
    assert {b["booking_status"] for b in data} == {"confirmed", "cancelled"}


@pytest.mark.asyncio
async def test_get_booking(client: AsyncClient, auth_headers, test_user, make_flight, make_booking):
    booking = await make_booking(test_user, await make_flight())

    response = await client.get(f"/api/bookings/{booking.id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["booking_reference"] == booking.booking_reference


@pytest.mark.asyncio
async def test_get_booking_not_found(client: AsyncClient, auth_headers):
    response = await client.get("/api/bookings/9999", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_other_users_booking_is_forbidden(
    client: AsyncClient, other_auth_headers, test_user, make_flight, make_booking
):
    booking = await make_booking(test_user, await make_flight())

    for method, path in [
        ("GET", f"/api/bookings/{booking.id}"),
        ("DELETE", f"/api/bookings/{booking.id}"),
        ("POST", f"/api/bookings/{booking.id}/checkin"),
    ]:
        response = await client.request(method, path, headers=other_auth_headers)
        assert response.status_code == 403
        assert response.json()["code"] == "forbidden"


@pytest.mark.asyncio
async def test_cancel_booking(client: AsyncClient, auth_headers, test_user, make_flight, make_booking):
    """Cancelling releases the seat and refunds the full price."""
    flight = await make_flight()
    booking = await make_booking(test_user, flight, seat_class=SeatClass.BUSINESS)

    response = await client.delete(f"/api/bookings/{booking.id}", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Booking cancelled successfully"
    assert data["booking"]["booking_status"] == "cancelled"
    assert data["booking"]["cancelled_at"] is not None
    assert data["booking"]["refund_amount"] == 1800.0
    assert data["refund"] == {"amount": 1800.0, "processing_window": "5-7 business days"}

    flight_response = await client.get(f"/api/flights/{flight.id}")
    assert flight_response.json()["available_business_seats"] == 20


@pytest.mark.asyncio
async def test_double_cancel(client: AsyncClient, auth_headers, test_user, make_flight, make_booking):
    flight = await make_flight()
    booking = await make_booking(test_user, flight)

    first = await client.delete(f"/api/bookings/{booking.id}", headers=auth_headers)
    assert first.status_code == 200

    second = await client.delete(f"/api/bookings/{booking.id}", headers=auth_headers)
    assert second.status_code == 400
    assert second.json()["code"] == "already_cancelled"

    # The seat was released exactly once
    flight_response = await client.get(f"/api/flights/{flight.id}")
    assert flight_response.json()["available_economy_seats"] == 150


@pytest.mark.asyncio
async def test_cancel_checked_in_booking(client: AsyncClient, auth_headers, test_user, make_flight, make_booking):
    booking = await make_booking(test_user, await make_flight())
    checkin = await client.post(f"/api/bookings/{booking.id}/checkin", headers=auth_headers)
    assert checkin.status_code == 200

    response = await client.delete(f"/api/bookings/{booking.id}", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_state_transition"


@pytest.mark.asyncio
async def test_reschedule_booking(client: AsyncClient, auth_headers, test_user, make_flight, make_booking):
    """Reschedule cancels the old booking and books the new flight."""
    old_flight = await make_flight(flight_number="FA100")
    new_flight = await make_flight(flight_number="FA102", departs_in=timedelta(days=2), economy_price=520.0)
    booking = await make_booking(test_user, old_flight, seat_number="22F")

    response = await client.post(
        f"/api/bookings/{booking.id}/reschedule",
        json={"new_flight_id": new_flight.id},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Booking rescheduled successfully"

    old, new = data["old_booking"], data["new_booking"]
    assert old["id"] == booking.id
    assert old["booking_status"] == "cancelled"
    assert old["refund_amount"] == 450.0
    assert new["id"] != booking.id
    assert new["booking_reference"] != booking.booking_reference
    assert new["booking_status"] == "confirmed"
    assert new["flight_id"] == new_flight.id
    assert new["rescheduled_from_id"] == booking.id
    assert new["seat_number"] == "22F"
    assert new["seat_class"] == "economy"
    assert new["total_price"] == 520.0
    assert new["passenger_name"] == booking.passenger_name

    old_seats = (await client.get(f"/api/flights/{old_flight.id}")).json()
    new_seats = (await client.get(f"/api/flights/{new_flight.id}")).json()
    assert old_seats["available_economy_seats"] == 150
    assert new_seats["available_economy_seats"] == 149


@pytest.mark.asyncio
async def test_reschedule_with_class_change(client: AsyncClient, auth_headers, test_user, make_flight, make_booking):
    old_flight = await make_flight(flight_number="FA100")
    new_flight = await make_flight(flight_number="FA102", departs_in=timedelta(days=2))
    booking = await make_booking(test_user, old_flight)

    response = await client.post(
        f"/api/bookings/{booking.id}/reschedule",
        json={"new_flight_id": new_flight.id, "seat_class": "business", "seat_number": "2A"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    new = response.json()["new_booking"]
    assert new["seat_class"] == "business"
    assert new["seat_number"] == "2A"
    assert new["total_price"] == 1800.0
    assert new["flight"]["available_business_seats"] == 19


@pytest.mark.asyncio
async def test_reschedule_to_full_flight_keeps_booking(
    client: AsyncClient, auth_headers, test_user, make_flight, make_booking
):
    old_flight = await make_flight(flight_number="FA100")
    full_flight = await make_flight(flight_number="FA102", departs_in=timedelta(days=2), economy_seats=0)
    booking = await make_booking(test_user, old_flight)

    response = await client.post(
        f"/api/bookings/{booking.id}/reschedule",
        json={"new_flight_id": full_flight.id},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "seat_unavailable"

    unchanged = (await client.get(f"/api/bookings/{booking.id}", headers=auth_headers)).json()
    assert unchanged["booking_status"] == "confirmed"
    assert unchanged["flight"]["available_economy_seats"] == 149


@pytest.mark.asyncio
async def test_reschedule_to_same_flight(client: AsyncClient, auth_headers, test_user, make_flight, make_booking):
    flight = await make_flight()
    booking = await make_booking(test_user, flight)

    response = await client.post(
        f"/api/bookings/{booking.id}/reschedule",
        json={"new_flight_id": flight.id},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


@pytest.mark.asyncio
async def test_reschedule_cancelled_booking(client: AsyncClient, auth_headers, test_user, make_flight, make_booking):
    old_flight = await make_flight(flight_number="FA100")
    new_flight = await make_flight(flight_number="FA102", departs_in=timedelta(days=2))
    booking = await make_booking(test_user, old_flight)
    await client.delete(f"/api/bookings/{booking.id}", headers=auth_headers)

    response = await client.post(
        f"/api/bookings/{booking.id}/reschedule",
        json={"new_flight_id": new_flight.id},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "already_cancelled"

    # Nothing was booked on the new flight
    new_seats = (await client.get(f"/api/flights/{new_flight.id}")).json()
    assert new_seats["available_economy_seats"] == 150


@pytest.mark.asyncio
async def test_reschedule_checked_in_booking(client: AsyncClient, auth_headers, test_user, make_flight, make_booking):
    old_flight = await make_flight(flight_number="FA100")
    new_flight = await make_flight(flight_number="FA102", departs_in=timedelta(days=2))
    booking = await make_booking(test_user, old_flight)
    await client.post(f"/api/bookings/{booking.id}/checkin", headers=auth_headers)

    response = await client.post(
        f"/api/bookings/{booking.id}/reschedule",
        json={"new_flight_id": new_flight.id},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_state_transition"


@pytest.mark.asyncio
async def test_search_cache_cleared_after_commit(
    client: AsyncClient, auth_headers, test_user, make_flight, make_booking, booking_payload, cache_clears
):
    """A search racing the write cannot re-cache seat counts from before the commit."""
    flight = await make_flight()

    response = await client.post("/api/bookings", json=booking_payload(flight), headers=auth_headers)
    assert response.status_code == 201
    assert cache_clears == [[(flight.id, 149, 20)]]

    response = await client.delete(f"/api/bookings/{response.json()['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert cache_clears[-1] == [(flight.id, 150, 20)]

    other = await make_flight(flight_number="FA102", departs_in=timedelta(days=2))
    booking = await make_booking(test_user, flight, seat_class=SeatClass.BUSINESS)
    response = await client.post(
        f"/api/bookings/{booking.id}/reschedule", json={"new_flight_id": other.id}, headers=auth_headers
    )
    assert response.status_code == 200
    assert cache_clears[-1] == [(flight.id, 150, 20), (other.id, 150, 19)]
    assert len(cache_clears) == 3


@pytest.mark.asyncio
async def test_failed_booking_leaves_search_cache(
    client: AsyncClient, auth_headers, make_flight, booking_payload, cache_clears
):
    flight = await make_flight(business_seats=0)

    response = await client.post(
        "/api/bookings", json=booking_payload(flight, seat_class="business"), headers=auth_headers
    )
    assert response.status_code == 400
    assert cache_clears == []


def test_booking_to_flight_mapping_is_one_way():
    """Bookings load their flight eagerly; flights keep no bookings collection."""
    assert inspect(Booking).relationships["flight"].lazy == "selectin"
    assert "bookings" not in inspect(Flight).relationships
