"""
Pydantic schemas for seat booking request/response validation.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel

from studyspace.schemas.duration import BookingDuration

SeatTier = Literal["basic", "standard", "premium"]


class BookingCreate(BaseModel):
    # Identifiers are checked by the booking engine so that library callers
    # and HTTP callers get the same InvalidRequest error.
    room_id: str
    seat_id: str
    student_id: str
    student_name: Optional[str] = None
    start_time: datetime
    duration: BookingDuration
    seat_tier: Optional[SeatTier] = None


class LineItem(BaseModel):
    description: str
    quantity: Decimal
    unit_price: Decimal
    total: Decimal


class BookingResponse(BaseModel):
    id: str
    library_id: str
    room_id: str
    seat_id: str
    student_id: str
    student_name: str
    start_time: datetime
    end_time: datetime
    duration: BookingDuration
    seat_tier: str
    status: str
    linked_bill_id: str
    created_at: datetime
    cancelled_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BillResponse(BaseModel):
    id: str
    library_id: str
    student_id: str
    student_name: str
    booking_id: str
    line_items: list[LineItem]
    subtotal: Decimal
    taxes: Decimal
    total_amount: Decimal
    status: str
    issued_at: datetime
    due_date: datetime

    model_config = {"from_attributes": True}


class BookingCreatedResponse(BaseModel):
    booking_id: str
    bill_id: str
    booking: BookingResponse
    bill: BillResponse


class BookingCancelResponse(BaseModel):
    message: str
    booking_id: str
    status: str


class SeatOccupancy(BaseModel):
    seat_id: str
    bookings: list[BookingResponse]


class RoomOccupancyResponse(BaseModel):
    library_id: str
    room_id: str
    day: date
    seats: list[SeatOccupancy]
    cached: bool = False
