from studyspace.models.activity_log import ActivityLog
from studyspace.models.bill import Bill
from studyspace.models.booking import SeatBooking
from studyspace.models.seat import Seat, Student

__all__ = ["ActivityLog", "Bill", "SeatBooking", "Seat", "Student"]
