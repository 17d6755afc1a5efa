"""
Tests for the booking and seating HTTP endpoints.
"""

import pytest
from httpx import AsyncClient

BOOKINGS_URL = "/api/v1/libraries/library1/bookings/"


def booking_payload(**overrides) -> dict:
    payload = {
        "room_id": "R1",
        "seat_id": "S1",
        "student_id": "ST1",
        "start_time": "2024-03-01T09:00:00",
        "duration": {"type": "hourly", "hours": 4},
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_booking(client: AsyncClient, seats, students):
    """Successful booking returns both ids and the bill."""
    response = await client.post(BOOKINGS_URL, json=booking_payload())
    assert response.status_code == 201
    data = response.json()
    assert data["booking_id"] == data["booking"]["id"]
    assert data["bill_id"] == data["bill"]["id"]
    assert data["booking"]["end_time"] == "2024-03-01T13:00:00"
    assert data["booking"]["duration"] == {"type": "hourly", "hours": 4}
    assert data["bill"]["status"] == "Due"
    assert float(data["bill"]["total_amount"]) == 160
    assert data["bill"]["line_items"][0]["quantity"] in ("4", 4)


@pytest.mark.asyncio
async def test_seat_conflict_returns_409_with_window(client: AsyncClient, seats, students):
    first = await client.post(BOOKINGS_URL, json=booking_payload())
    assert first.status_code == 201

    response = await client.post(
        BOOKINGS_URL, json=booking_payload(student_id="ST2", start_time="2024-03-01T11:00:00")
    )
    assert response.status_code == 409
    data = response.json()
    assert data["error"] == "seat_conflict"
    assert data["retryable"] is False
    assert data["conflict"]["booking_id"] == first.json()["booking_id"]
    assert data["conflict"]["start_time"] == "2024-03-01T09:00:00"
    assert data["conflict"]["end_time"] == "2024-03-01T13:00:00"


@pytest.mark.asyncio
async def test_student_conflict_returns_409(client: AsyncClient, seats, students):
    await client.post(BOOKINGS_URL, json=booking_payload())

    response = await client.post(
        BOOKINGS_URL, json=booking_payload(seat_id="S2", start_time="2024-03-01T10:00:00")
    )
    assert response.status_code == 409
    assert response.json()["error"] == "student_conflict"


@pytest.mark.asyncio
async def test_missing_identifier_returns_422(client: AsyncClient, seats, students):
    response = await client.post(BOOKINGS_URL, json=booking_payload(seat_id=""))
    assert response.status_code == 422
    assert response.json()["error"] == "invalid_request"


@pytest.mark.asyncio
async def test_unknown_duration_rejected(client: AsyncClient, seats, students):
    response = await client.post(BOOKINGS_URL, json=booking_payload(duration={"type": "weekly"}))
    assert response.status_code == 422
    data = response.json()
    assert data["error"] == "invalid_duration"
    assert data["retryable"] is False


@pytest.mark.asyncio
async def test_unsupported_hours_rejected(client: AsyncClient, seats, students):
    response = await client.post(
        BOOKINGS_URL, json=booking_payload(duration={"type": "hourly", "hours": 5})
    )
    assert response.status_code == 422
    assert response.json()["error"] == "invalid_duration"
    assert "duration" in response.json()["detail"]


@pytest.mark.asyncio
async def test_malformed_body_is_invalid_request(client: AsyncClient, seats, students):
    payload = booking_payload()
    del payload["student_id"]
    response = await client.post(BOOKINGS_URL, json=payload)
    assert response.status_code == 422
    assert response.json()["error"] == "invalid_request"

    response = await client.post(
        BOOKINGS_URL, content="not json at all", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 422
    assert response.json()["error"] == "invalid_request"


@pytest.mark.asyncio
async def test_daily_after_close_returns_invalid_duration(client: AsyncClient, seats, students):
    response = await client.post(
        BOOKINGS_URL,
        json=booking_payload(start_time="2024-03-01T22:00:00", duration={"type": "daily"}),
    )
    assert response.status_code == 422
    assert response.json()["error"] == "invalid_duration"


@pytest.mark.asyncio
async def test_unknown_seat_returns_404(client: AsyncClient, seats, students):
    response = await client.post(BOOKINGS_URL, json=booking_payload(seat_id="S99"))
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_cancel_booking_twice(client: AsyncClient, seats, students):
    booking_id = (await client.post(BOOKINGS_URL, json=booking_payload())).json()["booking_id"]

    first = await client.delete(f"{BOOKINGS_URL}{booking_id}")
    assert first.status_code == 200
    assert first.json()["status"] == "cancelled"

    second = await client.delete(f"{BOOKINGS_URL}{booking_id}")
    assert second.status_code == 200
    assert second.json()["status"] == "cancelled"

    missing = await client.delete(f"{BOOKINGS_URL}does-not-exist")
    assert missing.status_code == 200


@pytest.mark.asyncio
async def test_get_and_list_bookings(client: AsyncClient, seats, students):
    booking_id = (await client.post(BOOKINGS_URL, json=booking_payload())).json()["booking_id"]
    await client.post(BOOKINGS_URL, json=booking_payload(seat_id="S2", student_id="ST2"))

    response = await client.get(f"{BOOKINGS_URL}{booking_id}")
    assert response.status_code == 200
    assert response.json()["seat_id"] == "S1"

    response = await client.get(BOOKINGS_URL, params={"student_id": "ST2"})
    assert [b["seat_id"] for b in response.json()] == ["S2"]

    response = await client.get(f"{BOOKINGS_URL}missing")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_room_occupancy(client: AsyncClient, seats, students):
    await client.post(BOOKINGS_URL, json=booking_payload())
    await client.post(
        BOOKINGS_URL, json=booking_payload(seat_id="S2", student_id="ST2", start_time="2024-03-01T13:00:00")
    )

    response = await client.get("/api/v1/libraries/library1/rooms/R1/occupancy", params={"day": "2024-03-01"})
    assert response.status_code == 200
    data = response.json()
    assert data["cached"] is False
    assert [seat["seat_id"] for seat in data["seats"]] == ["S1", "S2"]

    response = await client.get("/api/v1/libraries/library1/rooms/R1/occupancy", params={"day": "2024-03-02"})
    assert response.json()["seats"] == []


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["cache"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_metrics_exposed(client: AsyncClient):
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "seat_booking_attempts_total" in response.text
