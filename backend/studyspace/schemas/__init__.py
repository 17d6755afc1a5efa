from studyspace.schemas.booking import (
    BillResponse,
    BookingCancelResponse,
    BookingCreate,
    BookingCreatedResponse,
    BookingResponse,
    RoomOccupancyResponse,
)
from studyspace.schemas.duration import (
    BookingDuration,
    DailyDuration,
    HourlyDuration,
    MonthlyDuration,
    YearlyDuration,
)

__all__ = [
    "BookingCreate", "BookingResponse", "BookingCreatedResponse", "BookingCancelResponse",
    "BillResponse", "RoomOccupancyResponse",
    "BookingDuration", "HourlyDuration", "DailyDuration", "MonthlyDuration", "YearlyDuration",
]
