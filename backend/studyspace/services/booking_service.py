"""
Seat booking engine with conflict-free reservation.

CONCURRENCY STRATEGY: Version Tokens with Retry
===============================================

Problem:
  Two admins book the same seat for overlapping windows at the same time.
  Both run the overlap query, both see nothing, both insert.
  Result: a double-booked seat. The same race exists for one student
  booked onto two different seats.

  A unique constraint cannot express "no overlapping intervals", so the
  invariants have to be enforced by the write path itself.

Solution:
  Every Seat and every Student row carries a `version` column. A booking
  attempt runs as one transaction:

  1. Read the seat (tier, custom pricing) and the student, remembering
     their versions
  2. Query active bookings for the seat and for the student whose
     end_time > start, then keep those whose start_time < end
     (half-open overlap: back-to-back windows never conflict)
  3. UPDATE seats    SET version = version + 1 WHERE <key> AND version = :seen
     UPDATE students SET version = version + 1 WHERE <key> AND version = :seen
  4. If either UPDATE touched no row, another booking for this seat or this
     student committed after step 1 -> roll back and restart from step 1
  5. Insert the SeatBooking and its Bill (plus the audit entry), commit

  Any two bookings that could conflict share a seat row or a student row,
  so at most one of them passes step 3 against a given version; the loser
  re-reads, now sees the winner's booking, and fails with a conflict.
  Rows for the two tokens are always claimed seat-first, so competing
  transactions never wait on each other in opposite orders.

  After BOOKING_MAX_RETRY_ATTEMPTS lost races the attempt surfaces as
  TransientFailure, the only retryable error.

Sessions passed in must use expire_on_commit=False; the returned ORM objects
are read after the commit.
"""

import time
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time as clock_time, timedelta
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from studyspace.core.config import get_settings
from studyspace.core.exceptions import (
    BookingError,
    InvalidRequest,
    NotFound,
    SeatConflict,
    StudentConflict,
    TransientFailure,
    format_window,
)
from studyspace.core.logging import get_logger
from studyspace.core.metrics import (
    booking_latency,
    record_booking_attempt,
    record_cancellation,
    record_db_retry,
)
from studyspace.models.activity_log import ActivityLog
from studyspace.models.bill import Bill
from studyspace.models.booking import ACTIVE, CANCELLED, SeatBooking
from studyspace.models.seat import Seat, Student
from studyspace.schemas.booking import BookingCreate
from studyspace.services.billing_service import build_bill, new_bill_id
from studyspace.services.duration_service import resolve_end_time, to_facility_time
from studyspace.services.pricing_service import quote

logger = get_logger(__name__)
settings = get_settings()


@dataclass
class BookingResult:
    booking: SeatBooking
    bill: Bill

    @property
    def booking_id(self) -> str:
        return self.booking.id

    @property
    def bill_id(self) -> str:
        return self.bill.id


def _require_ids(**identifiers: Optional[str]) -> None:
    missing = [name for name, value in identifiers.items() if not value or not str(value).strip()]
    if missing:
        raise InvalidRequest(f"Missing required identifiers: {', '.join(missing)}")


async def find_seat_conflicts(
    db: AsyncSession,
    library_id: str,
    room_id: str,
    seat_id: str,
    start_time: datetime,
    end_time: datetime,
) -> list[SeatBooking]:
    """Active bookings of this seat overlapping [start_time, end_time), earliest first."""
    result = await db.execute(
        select(SeatBooking)
        .where(
            SeatBooking.library_id == library_id,
            SeatBooking.room_id == room_id,
            SeatBooking.seat_id == seat_id,
            SeatBooking.status == ACTIVE,
            SeatBooking.end_time > start_time,
        )
        .order_by(SeatBooking.start_time.asc())
    )
    return [b for b in result.scalars().all() if b.start_time < end_time]


async def find_student_conflicts(
    db: AsyncSession,
    library_id: str,
    student_id: str,
    start_time: datetime,
    end_time: datetime,
) -> list[SeatBooking]:
    """Active bookings of this student, on any seat, overlapping [start_time, end_time)."""
    result = await db.execute(
        select(SeatBooking)
        .where(
            SeatBooking.library_id == library_id,
            SeatBooking.student_id == student_id,
            SeatBooking.status == ACTIVE,
            SeatBooking.end_time > start_time,
        )
        .order_by(SeatBooking.start_time.asc())
    )
    return [b for b in result.scalars().all() if b.start_time < end_time]


async def _claim_version_tokens(
    db: AsyncSession,
    seat: Seat,
    seat_version: int,
    student: Student,
    student_version: int,
) -> bool:
    """Compare-and-swap both tokens; False means a competing booking got there first."""
    seat_result = await db.execute(
        update(Seat)
        .where(
            Seat.library_id == seat.library_id,
            Seat.room_id == seat.room_id,
            Seat.id == seat.id,
            Seat.version == seat_version,
        )
        .values(version=Seat.version + 1)
        .execution_options(synchronize_session=False)
    )
    if seat_result.rowcount == 0:
        return False

    student_result = await db.execute(
        update(Student)
        .where(
            Student.library_id == student.library_id,
            Student.id == student.id,
            Student.version == student_version,
        )
        .values(version=Student.version + 1)
        .execution_options(synchronize_session=False)
    )
    return student_result.rowcount == 1


async def _attempt_booking(
    db: AsyncSession,
    library_id: str,
    booking_in: BookingCreate,
    start_time: datetime,
    end_time: datetime,
) -> Optional[BookingResult]:
    """One read-decide-write pass. Returns None when the version tokens moved."""
    seat = (
        await db.execute(
            select(Seat)
            .where(
                Seat.library_id == library_id,
                Seat.room_id == booking_in.room_id,
                Seat.id == booking_in.seat_id,
            )
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if seat is None:
        raise NotFound(f"Seat {booking_in.seat_id} not found in room {booking_in.room_id}")

    student = (
        await db.execute(
            select(Student)
            .where(Student.library_id == library_id, Student.id == booking_in.student_id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if student is None:
        raise NotFound(f"Student {booking_in.student_id} not found")
    if student.status != "active":
        raise InvalidRequest(f"Student {student.id} is not active")

    seat_version = seat.version
    student_version = student.version
    student_name = booking_in.student_name or student.name

    seat_conflicts = await find_seat_conflicts(
        db, library_id, seat.room_id, seat.id, start_time, end_time
    )
    if seat_conflicts:
        clash = seat_conflicts[0]
        raise SeatConflict(
            f"Seat {seat.id} is already booked from {format_window(clash.start_time, clash.end_time)}",
            clash.id,
            clash.start_time,
            clash.end_time,
        )

    student_conflicts = await find_student_conflicts(
        db, library_id, student.id, start_time, end_time
    )
    if student_conflicts:
        clash = student_conflicts[0]
        raise StudentConflict(
            f"{student_name} already has a booking for seat {clash.seat_id} "
            f"from {format_window(clash.start_time, clash.end_time)}",
            clash.id,
            clash.start_time,
            clash.end_time,
        )

    tier = booking_in.seat_tier or seat.tier
    price_quote = quote(booking_in.duration, tier, seat.custom_pricing)

    if not await _claim_version_tokens(db, seat, seat_version, student, student_version):
        return None

    booking_id = str(uuid.uuid4())
    bill_id = new_bill_id()

    booking = SeatBooking(
        id=booking_id,
        library_id=library_id,
        room_id=seat.room_id,
        seat_id=seat.id,
        student_id=student.id,
        student_name=student_name,
        start_time=start_time,
        end_time=end_time,
        duration=booking_in.duration.model_dump(),
        seat_tier=tier,
        status=ACTIVE,
        linked_bill_id=bill_id,
    )
    db.add(booking)
    await db.flush()

    bill = build_bill(
        bill_id=bill_id,
        library_id=library_id,
        booking_id=booking_id,
        student_id=student.id,
        student_name=student_name,
        price_quote=price_quote,
        due_date=start_time,
    )
    db.add(bill)

    if settings.AUDIT_LOG_ENABLED:
        db.add(ActivityLog(
            library_id=library_id,
            activity_type="booking_created",
            details={
                "booking_id": booking_id,
                "bill_id": bill_id,
                "seat_id": seat.id,
                "student_id": student.id,
                "student_name": student_name,
            },
        ))

    await db.flush()
    await db.refresh(booking)
    await db.refresh(bill)
    return BookingResult(booking=booking, bill=bill)


async def create_booking(
    db: AsyncSession,
    library_id: str,
    booking_in: BookingCreate,
) -> BookingResult:
    """
    Validate and atomically commit a seat booking together with its bill.

    Raises InvalidRequest, InvalidDuration, NotFound, SeatConflict,
    StudentConflict or TransientFailure. Nothing is left written on any
    error path.
    """
    started = time.perf_counter()
    try:
        _require_ids(
            library_id=library_id,
            room_id=booking_in.room_id,
            seat_id=booking_in.seat_id,
            student_id=booking_in.student_id,
        )
        start_time = to_facility_time(booking_in.start_time)
        end_time = resolve_end_time(start_time, booking_in.duration)

        for attempt in range(1, settings.BOOKING_MAX_RETRY_ATTEMPTS + 1):
            try:
                result = await _attempt_booking(db, library_id, booking_in, start_time, end_time)
                if result is not None:
                    await db.commit()
            except Exception:
                await db.rollback()
                raise

            if result is None:
                record_db_retry()
                logger.info(
                    "booking_retry",
                    library_id=library_id,
                    seat_id=booking_in.seat_id,
                    student_id=booking_in.student_id,
                    attempt=attempt,
                    reason="version_conflict",
                )
                await db.rollback()
                continue

            record_booking_attempt("success")
            logger.info(
                "booking_created",
                library_id=library_id,
                booking_id=result.booking_id,
                bill_id=result.bill_id,
                seat_id=booking_in.seat_id,
                student_id=booking_in.student_id,
                start_time=start_time.isoformat(),
                end_time=end_time.isoformat(),
                amount=str(result.bill.total_amount),
                attempt=attempt,
            )
            return result

        raise TransientFailure(
            "Booking could not be completed due to concurrent updates. Please try again."
        )

    except BookingError as exc:
        record_booking_attempt(exc.error)
        logger.warning(
            "booking_rejected",
            library_id=library_id,
            seat_id=booking_in.seat_id,
            student_id=booking_in.student_id,
            error=exc.error,
            reason=exc.message,
        )
        raise
    except Exception as exc:
        record_booking_attempt("error")
        logger.error(
            "booking_failed",
            library_id=library_id,
            seat_id=booking_in.seat_id,
            error=str(exc),
        )
        raise
    finally:
        booking_latency.observe(time.perf_counter() - started)


async def cancel_booking(
    db: AsyncSession,
    library_id: str,
    booking_id: str,
) -> Optional[SeatBooking]:
    """
    Retire a booking so its seat and student are free for that window again.

    Idempotent: an unknown or already cancelled booking is a no-op and the
    current record (or None) is returned. The linked bill is left untouched.
    """
    _require_ids(library_id=library_id, booking_id=booking_id)

    try:
        result = await db.execute(
            update(SeatBooking)
            .where(
                SeatBooking.id == booking_id,
                SeatBooking.library_id == library_id,
                SeatBooking.status == ACTIVE,
            )
            .values(status=CANCELLED, cancelled_at=func.now(), updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        cancelled = result.rowcount == 1

        booking = (
            await db.execute(
                select(SeatBooking)
                .where(SeatBooking.id == booking_id, SeatBooking.library_id == library_id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()

        if cancelled and settings.AUDIT_LOG_ENABLED:
            db.add(ActivityLog(
                library_id=library_id,
                activity_type="booking_cancelled",
                details={
                    "booking_id": booking_id,
                    "seat_id": booking.seat_id,
                    "student_id": booking.student_id,
                    "student_name": booking.student_name,
                },
            ))
            await db.flush()

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    record_cancellation(cancelled)
    if cancelled:
        logger.info(
            "booking_cancelled",
            library_id=library_id,
            booking_id=booking_id,
            seat_id=booking.seat_id,
            student_id=booking.student_id,
        )
    else:
        logger.info(
            "booking_cancel_noop",
            library_id=library_id,
            booking_id=booking_id,
            reason="not_found" if booking is None else "already_cancelled",
        )
    return booking


async def get_booking(db: AsyncSession, library_id: str, booking_id: str) -> SeatBooking:
    result = await db.execute(
        select(SeatBooking).where(
            SeatBooking.id == booking_id,
            SeatBooking.library_id == library_id,
        )
    )
    booking = result.scalar_one_or_none()
    if booking is None:
        raise NotFound(f"Booking {booking_id} not found")
    return booking


async def list_bookings(
    db: AsyncSession,
    library_id: str,
    seat_id: Optional[str] = None,
    student_id: Optional[str] = None,
    active_only: bool = True,
) -> list[SeatBooking]:
    """Bookings of a library, optionally narrowed to one seat and/or one student."""
    query = select(SeatBooking).where(SeatBooking.library_id == library_id)
    if seat_id:
        query = query.where(SeatBooking.seat_id == seat_id)
    if student_id:
        query = query.where(SeatBooking.student_id == student_id)
    if active_only:
        query = query.where(SeatBooking.status == ACTIVE)

    result = await db.execute(query.order_by(SeatBooking.start_time.asc()))
    return list(result.scalars().all())


async def room_occupancy(
    db: AsyncSession,
    library_id: str,
    room_id: str,
    day: date,
) -> dict[str, list[SeatBooking]]:
    """Active bookings of a room overlapping the calendar day, grouped by seat."""
    day_start = datetime.combine(day, clock_time.min)
    day_end = day_start + timedelta(days=1)

    result = await db.execute(
        select(SeatBooking)
        .where(
            SeatBooking.library_id == library_id,
            SeatBooking.room_id == room_id,
            SeatBooking.status == ACTIVE,
            SeatBooking.end_time > day_start,
            SeatBooking.start_time < day_end,
        )
        .order_by(SeatBooking.seat_id.asc(), SeatBooking.start_time.asc())
    )

    occupancy: dict[str, list[SeatBooking]] = {}
    for booking in result.scalars().all():
        occupancy.setdefault(booking.seat_id, []).append(booking)
    return occupancy
