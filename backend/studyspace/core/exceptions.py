"""
Booking engine error kinds.

Every failure the engine reports is a BookingError subclass carrying the HTTP
status the API layer should answer with. Only TransientFailure is retryable:
the others are business outcomes or caller mistakes.
"""

from datetime import datetime


class BookingError(Exception):
    status_code = 400
    error = "booking_error"
    retryable = False

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "error": self.error, "retryable": self.retryable}


class InvalidRequest(BookingError):
    status_code = 422
    error = "invalid_request"


class InvalidDuration(BookingError):
    status_code = 422
    error = "invalid_duration"


class NotFound(BookingError):
    status_code = 404
    error = "not_found"


class TransientFailure(BookingError):
    status_code = 503
    error = "transient_failure"
    retryable = True


class ConflictError(BookingError):
    """A candidate window overlaps an existing active booking."""

    status_code = 409

    def __init__(self, message: str, booking_id: str, start_time: datetime, end_time: datetime):
        super().__init__(message)
        self.booking_id = booking_id
        self.start_time = start_time
        self.end_time = end_time

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["conflict"] = {
            "booking_id": self.booking_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
        }
        return data


class SeatConflict(ConflictError):
    error = "seat_conflict"


class StudentConflict(ConflictError):
    error = "student_conflict"


def format_window(start: datetime, end: datetime) -> str:
    if start.date() == end.date():
        return f"{start:%Y-%m-%d %H:%M} to {end:%H:%M}"
    return f"{start:%Y-%m-%d %H:%M} to {end:%Y-%m-%d %H:%M}"
