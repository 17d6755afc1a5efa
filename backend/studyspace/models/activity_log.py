"""
Append-only audit trail of booking activity, written inside the booking
transaction when AUDIT_LOG_ENABLED is set.
"""

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, func

from studyspace.db.base import Base


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    library_id = Column(String(64), nullable=False)
    activity_type = Column(String(50), nullable=False)  # booking_created, booking_cancelled
    details = Column(JSON, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_activity_logs_library_timestamp", "library_id", "timestamp"),
    )
