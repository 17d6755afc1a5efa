"""
SeatBooking: one seat held by one student for the half-open window [start_time, end_time).

Key design decisions:
- start/end are facility-local wall-clock times (naive datetimes)
- Cancellation flips status to "cancelled"; rows are never deleted
- The overlap invariants span rows, so they are enforced by the booking
  engine's version-token transaction, not by a table constraint
- Composite indexes cover the two conflict lookups (per seat, per student)
"""

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Index, String

from studyspace.db.base import Base, TimestampMixin

ACTIVE = "active"
CANCELLED = "cancelled"


class SeatBooking(Base, TimestampMixin):
    __tablename__ = "seat_bookings"

    id = Column(String(36), primary_key=True)
    library_id = Column(String(64), nullable=False)
    room_id = Column(String(64), nullable=False)
    seat_id = Column(String(64), nullable=False)
    student_id = Column(String(64), nullable=False)
    student_name = Column(String(255), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    duration = Column(JSON, nullable=False)  # {"type": "hourly", "hours": 4}
    seat_tier = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default=ACTIVE)
    linked_bill_id = Column(String(36), nullable=False)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="check_booking_window_positive"),
        CheckConstraint("status IN ('active', 'cancelled')", name="check_seat_booking_status"),
        Index("ix_seat_bookings_seat_window", "library_id", "room_id", "seat_id", "status", "end_time"),
        Index("ix_seat_bookings_student_window", "library_id", "student_id", "status", "end_time"),
    )

    def __repr__(self) -> str:
        return (
            f"<SeatBooking(id={self.id}, seat={self.seat_id}, student={self.student_id}, "
            f"{self.start_time}..{self.end_time}, status={self.status})>"
        )
