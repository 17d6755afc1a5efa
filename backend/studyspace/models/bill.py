"""
Bill generated as the pricing consequence of a seat booking.

Created in the same transaction as its booking and never edited by the booking
engine afterwards; payment and refunds are handled elsewhere.
"""

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, ForeignKey, Index, Numeric, String, func

from studyspace.db.base import Base, TimestampMixin

DUE = "Due"
PAID = "Paid"


class Bill(Base, TimestampMixin):
    __tablename__ = "bills"

    id = Column(String(36), primary_key=True)
    library_id = Column(String(64), nullable=False)
    student_id = Column(String(64), nullable=False)
    student_name = Column(String(255), nullable=False)
    booking_id = Column(String(36), ForeignKey("seat_bookings.id"), nullable=False, unique=True)
    # [{"description": ..., "quantity": ..., "unit_price": ..., "total": ...}]
    line_items = Column(JSON, nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    taxes = Column(Numeric(12, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(10), nullable=False, default=DUE)
    issued_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    due_date = Column(DateTime, nullable=False)

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="check_bill_total_non_negative"),
        CheckConstraint("status IN ('Due', 'Paid')", name="check_bill_status"),
        Index("ix_bills_library_student", "library_id", "student_id"),
    )

    def __repr__(self) -> str:
        return f"<Bill(id={self.id}, booking={self.booking_id}, total={self.total_amount}, status={self.status})>"
