"""Initial schema: seats, students, seat_bookings, bills, activity_logs.

Revision ID: 001
Revises: None
Create Date: 2024-02-20
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Seats (owned by seat management; version is the booking lock token)
    op.create_table(
        "seats",
        sa.Column("library_id", sa.String(64), primary_key=True),
        sa.Column("room_id", sa.String(64), primary_key=True),
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("seat_number", sa.String(32), nullable=True),
        sa.Column("tier", sa.String(20), nullable=False, server_default="standard"),
        sa.Column("custom_pricing", sa.JSON(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
        sa.CheckConstraint("tier IN ('basic', 'standard', 'premium')", name="check_seat_tier"),
    )

    # Students (owned by student management; version is the booking lock token)
    op.create_table(
        "students",
        sa.Column("library_id", sa.String(64), primary_key=True),
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
    )

    # Seat bookings
    op.create_table(
        "seat_bookings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("library_id", sa.String(64), nullable=False),
        sa.Column("room_id", sa.String(64), nullable=False),
        sa.Column("seat_id", sa.String(64), nullable=False),
        sa.Column("student_id", sa.String(64), nullable=False),
        sa.Column("student_name", sa.String(255), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        sa.Column("duration", sa.JSON(), nullable=False),
        sa.Column("seat_tier", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("linked_bill_id", sa.String(36), nullable=False),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("end_time > start_time", name="check_booking_window_positive"),
        sa.CheckConstraint("status IN ('active', 'cancelled')", name="check_seat_booking_status"),
    )
    # Conflict lookups: equality on key + status, range on end_time
    op.create_index(
        "ix_seat_bookings_seat_window", "seat_bookings",
        ["library_id", "room_id", "seat_id", "status", "end_time"],
    )
    op.create_index(
        "ix_seat_bookings_student_window", "seat_bookings",
        ["library_id", "student_id", "status", "end_time"],
    )

    # Bills
    op.create_table(
        "bills",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("library_id", sa.String(64), nullable=False),
        sa.Column("student_id", sa.String(64), nullable=False),
        sa.Column("student_name", sa.String(255), nullable=False),
        sa.Column("booking_id", sa.String(36), sa.ForeignKey("seat_bookings.id"), nullable=False, unique=True),
        sa.Column("line_items", sa.JSON(), nullable=False),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("taxes", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(10), nullable=False, server_default="Due"),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("due_date", sa.DateTime(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("total_amount >= 0", name="check_bill_total_non_negative"),
        sa.CheckConstraint("status IN ('Due', 'Paid')", name="check_bill_status"),
    )
    op.create_index("ix_bills_library_student", "bills", ["library_id", "student_id"])

    # Audit trail
    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("library_id", sa.String(64), nullable=False),
        sa.Column("activity_type", sa.String(50), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_library_timestamp", "activity_logs", ["library_id", "timestamp"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("bills")
    op.drop_table("seat_bookings")
    op.drop_table("students")
    op.drop_table("seats")
