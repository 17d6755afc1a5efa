"""
Seat and Student records, owned by the seat-management and student modules.

The booking engine only reads them, apart from bumping `version`: the version
column is the optimistic-lock token that serialises concurrent bookings for the
same seat or the same student.
"""

from sqlalchemy import JSON, CheckConstraint, Column, Integer, String

from studyspace.db.base import Base, TimestampMixin

SEAT_TIERS = ("basic", "standard", "premium")


class Seat(Base, TimestampMixin):
    __tablename__ = "seats"

    library_id = Column(String(64), primary_key=True)
    room_id = Column(String(64), primary_key=True)
    id = Column(String(64), primary_key=True)
    seat_number = Column(String(32), nullable=True)
    tier = Column(String(20), nullable=False, default="standard")
    # Optional per-duration-class unit rates: {"hourly": 100, "daily": 450, "monthly": 5000}
    custom_pricing = Column(JSON, nullable=True)

    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("tier IN ('basic', 'standard', 'premium')", name="check_seat_tier"),
    )

    def __repr__(self) -> str:
        return f"<Seat(library={self.library_id}, room={self.room_id}, id={self.id}, tier={self.tier})>"


class Student(Base, TimestampMixin):
    __tablename__ = "students"

    library_id = Column(String(64), primary_key=True)
    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default="active")  # active, inactive

    version = Column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<Student(library={self.library_id}, id={self.id}, status={self.status})>"
