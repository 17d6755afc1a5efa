"""
Seat booking endpoints. The tenant is always explicit in the path.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from studyspace.core.logging import get_logger
from studyspace.db.session import get_db
from studyspace.schemas.booking import (
    BillResponse,
    BookingCancelResponse,
    BookingCreate,
    BookingCreatedResponse,
    BookingResponse,
)
from studyspace.services.booking_service import (
    cancel_booking,
    create_booking,
    get_booking,
    list_bookings,
)
from studyspace.services.cache_service import invalidate_room_occupancy

logger = get_logger(__name__)
router = APIRouter(prefix="/libraries/{library_id}/bookings", tags=["Bookings"])


@router.post("/", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    library_id: str,
    booking_data: BookingCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Book a seat for a student and issue the matching bill.

    Returns 409 with the clashing window when the seat or the student is
    already booked, and 503 (retryable) when concurrent bookings kept
    winning the race.
    """
    result = await create_booking(db, library_id, booking_data)
    await invalidate_room_occupancy(library_id, result.booking.room_id)
    return BookingCreatedResponse(
        booking_id=result.booking_id,
        bill_id=result.bill_id,
        booking=BookingResponse.model_validate(result.booking),
        bill=BillResponse.model_validate(result.bill),
    )


@router.get("/", response_model=list[BookingResponse])
async def list_bookings_endpoint(
    library_id: str,
    seat_id: Optional[str] = Query(None),
    student_id: Optional[str] = Query(None),
    active_only: bool = Query(True),
    db: AsyncSession = Depends(get_db),
):
    """List bookings, optionally for one seat and/or one student."""
    return await list_bookings(db, library_id, seat_id, student_id, active_only)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking_endpoint(
    library_id: str,
    booking_id: str,
    db: AsyncSession = Depends(get_db),
):
    return await get_booking(db, library_id, booking_id)


@router.delete("/{booking_id}", response_model=BookingCancelResponse)
async def cancel_booking_endpoint(
    library_id: str,
    booking_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking. Cancelling twice, or an unknown id, is not an error."""
    booking = await cancel_booking(db, library_id, booking_id)
    if booking is None:
        return BookingCancelResponse(
            message="Booking not found; nothing to cancel",
            booking_id=booking_id,
            status="cancelled",
        )

    await invalidate_room_occupancy(library_id, booking.room_id)
    return BookingCancelResponse(
        message="Booking cancelled successfully",
        booking_id=booking.id,
        status=booking.status,
    )
