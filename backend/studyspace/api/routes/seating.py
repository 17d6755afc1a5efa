"""
Seating plan endpoints with Redis caching of per-day room occupancy.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from studyspace.core.logging import get_logger
from studyspace.db.session import get_db
from studyspace.schemas.booking import BookingResponse, RoomOccupancyResponse
from studyspace.services.booking_service import room_occupancy
from studyspace.services.cache_service import get_cached_occupancy, set_cached_occupancy

logger = get_logger(__name__)
router = APIRouter(prefix="/libraries/{library_id}/rooms", tags=["Seating"])


@router.get("/{room_id}/occupancy", response_model=RoomOccupancyResponse)
async def room_occupancy_endpoint(
    library_id: str,
    room_id: str,
    day: date = Query(..., description="Calendar day, YYYY-MM-DD"),
    db: AsyncSession = Depends(get_db),
):
    """
    Active bookings of every seat in a room for one day.
    Cached in Redis; invalidated whenever a booking in the room changes.
    """
    cached = await get_cached_occupancy(library_id, room_id, day)
    if cached:
        logger.info("occupancy_cache_hit", room_id=room_id, day=day.isoformat())
        cached["cached"] = True
        return RoomOccupancyResponse(**cached)

    by_seat = await room_occupancy(db, library_id, room_id, day)

    response_data = {
        "library_id": library_id,
        "room_id": room_id,
        "day": day.isoformat(),
        "seats": [
            {
                "seat_id": seat_id,
                "bookings": [BookingResponse.model_validate(b).model_dump(mode="json") for b in bookings],
            }
            for seat_id, bookings in by_seat.items()
        ],
        "cached": False,
    }

    await set_cached_occupancy(library_id, room_id, day, response_data)

    return RoomOccupancyResponse(**response_data)
