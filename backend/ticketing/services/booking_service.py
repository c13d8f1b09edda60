"""
Booking service: ticket reservation, cancellation and payment bookkeeping.

CONCURRENCY STRATEGY: Conditional Decrement in One Transaction
==============================================================

Problem:
  Two users try to book the last ticket simultaneously.
  Both read availability=1, both decrement to 0, both succeed.
  Result: Overselling.

Solution:
  The decrement is a single conditional UPDATE:

    UPDATE tickets SET availability = availability - 1
    WHERE id = :ticket_id AND availability > 0

  The database serializes concurrent writers on the row, and the second
  writer re-evaluates `availability > 0` against the committed value. If
  rowcount == 0 the ticket sold out in between and the booking fails with
  409. There is no retry: a lost race is a definitive "sold out".

  The Booking and Payment inserts run in the same transaction as the
  decrement, so either all three rows change or none do. The CHECK
  constraint on availability is the final safety net.

  Identifiers come from the database (identity / autoincrement columns),
  never from "max(id) + 1", which races under concurrent inserts.
"""

import time
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.config import get_settings
from ticketing.core.exceptions import Conflict, Forbidden, Internal, InvalidArgument, NotFound
from ticketing.core.logging import get_logger
from ticketing.core.metrics import booking_latency, payments_repaired, record_booking_attempt
from ticketing.models.booking import Booking, BookingStatus, Payment, PaymentStatus
from ticketing.models.event import Event
from ticketing.models.ticket import Ticket
from ticketing.schemas.booking import BookingConfirmation, BookingSummary

logger = get_logger(__name__)


def _new_payment(booking_id: int, amount: Decimal, payment_date: date, method: str) -> Payment:
    return Payment(
        booking_id=booking_id,
        amount=amount,
        payment_date=payment_date,
        method=method,
        status=PaymentStatus.SUCCESSFUL.value,
    )


async def _record_payment(db: AsyncSession, booking: Booking, amount: Decimal, method: str) -> Payment:
    payment = _new_payment(booking.id, amount, booking.booking_date, method)
    db.add(payment)
    await db.flush()
    return payment


async def create_booking(
    db: AsyncSession,
    user_id: int,
    ticket_id: int,
    payment_method: Optional[str] = None,
) -> BookingConfirmation:
    """
    Book one ticket for a user and record its payment.

    Raises NotFound for an unknown ticket, Conflict when sold out (including
    losing a race for the last ticket) and Internal on storage failure. On
    any failure nothing is committed.
    """
    method = payment_method or get_settings().DEFAULT_PAYMENT_METHOD
    started = time.perf_counter()

    row = (
        await db.execute(
            select(Ticket.availability, Ticket.price, Ticket.category, Event.title)
            .join(Event, Event.id == Ticket.event_id)
            .where(Ticket.id == ticket_id)
        )
    ).one_or_none()

    if row is None:
        record_booking_attempt("not_found")
        raise NotFound("Ticket not found")

    availability, price, category, title = row
    if availability <= 0:
        record_booking_attempt("conflict")
        logger.warning("booking_sold_out", ticket_id=ticket_id, user_id=user_id)
        raise Conflict("Sold out")

    try:
        decremented = await db.execute(
            update(Ticket)
            .where(Ticket.id == ticket_id, Ticket.availability > 0)
            .values(availability=Ticket.availability - 1)
        )
        if decremented.rowcount != 1:
            await db.rollback()
            record_booking_attempt("conflict")
            logger.info("booking_conflict", ticket_id=ticket_id, user_id=user_id, reason="sold_out_concurrently")
            raise Conflict("Sold out")

        booking = Booking(
            user_id=user_id,
            ticket_id=ticket_id,
            booking_date=date.today(),
            status=BookingStatus.CONFIRMED.value,
        )
        db.add(booking)
        await db.flush()

        payment = await _record_payment(db, booking, price, method)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        record_booking_attempt("error")
        logger.error("booking_failed", ticket_id=ticket_id, user_id=user_id, error=str(e))
        raise Internal("Failed to create booking") from e
    finally:
        booking_latency.observe(time.perf_counter() - started)

    record_booking_attempt("success")
    logger.info(
        "booking_created",
        booking_id=booking.id,
        payment_id=payment.id,
        user_id=user_id,
        ticket_id=ticket_id,
        amount=str(price),
    )
    return BookingConfirmation(
        booking_id=booking.id,
        title=title,
        ticket_category=category,
        price=price,
        booking_date=booking.booking_date,
        booking_status=booking.status,
    )


async def cancel_booking(db: AsyncSession, user_id: int, booking_id: int) -> Booking:
    """
    Cancel one of the caller's bookings.

    Ticket availability is NOT restored and the payment row is left as is.
    """
    booking = (
        await db.execute(
            select(Booking).where(Booking.id == booking_id, Booking.user_id == user_id)
        )
    ).scalar_one_or_none()

    if booking is None:
        raise Forbidden("Not your booking")

    if booking.status == BookingStatus.CANCELLED.value:
        raise InvalidArgument("Booking is already cancelled")

    try:
        booking.status = BookingStatus.CANCELLED.value
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("booking_cancel_failed", booking_id=booking_id, error=str(e))
        raise Internal("Failed to cancel booking") from e

    logger.info("booking_cancelled", booking_id=booking_id, user_id=user_id, ticket_id=booking.ticket_id)
    return booking


async def list_user_bookings(db: AsyncSession, user_id: int) -> list[BookingSummary]:
    """Get all bookings for a user, newest first."""
    result = await db.execute(
        select(
            Booking.id,
            Booking.booking_date,
            Booking.status,
            Event.title,
            Event.start_date,
            Ticket.category,
            Ticket.price,
        )
        .join(Ticket, Ticket.id == Booking.ticket_id)
        .join(Event, Event.id == Ticket.event_id)
        .where(Booking.user_id == user_id)
        .order_by(Booking.booking_date.desc(), Booking.id.desc())
    )
    return [
        BookingSummary(
            booking_id=row.id,
            booking_date=row.booking_date,
            booking_status=row.status,
            title=row.title,
            start_date=row.start_date,
            ticket_category=row.category,
            price=row.price,
        )
        for row in result
    ]


async def repair_missing_payments(db: AsyncSession, user_id: Optional[int] = None) -> int:
    """
    Backfill a Successful payment for every booking that has none.

    Scoped to one user's bookings when `user_id` is given. Amount is the
    ticket price and the payment date is the booking date. All backfills
    commit together. Returns the number of payments created.
    """
    query = (
        select(Booking.id, Booking.booking_date, Ticket.price)
        .join(Ticket, Ticket.id == Booking.ticket_id)
        .outerjoin(Payment, Payment.booking_id == Booking.id)
        .where(Payment.id.is_(None))
        .order_by(Booking.id)
    )
    if user_id is not None:
        query = query.where(Booking.user_id == user_id)

    missing = (await db.execute(query)).all()
    if not missing:
        return 0

    method = get_settings().DEFAULT_PAYMENT_METHOD
    try:
        db.add_all(
            _new_payment(row.id, row.price, row.booking_date, method) for row in missing
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("payment_repair_failed", error=str(e))
        raise Internal("Failed to fix payments") from e

    payments_repaired.inc(len(missing))
    logger.info("payments_repaired", count=len(missing), scope_user_id=user_id)
    return len(missing)


async def get_total_paid(db: AsyncSession, user_id: int) -> Decimal:
    """Sum of successful payments across the user's bookings."""
    total = (
        await db.execute(
            select(func.coalesce(func.sum(Payment.amount), 0))
            .join(Booking, Booking.id == Payment.booking_id)
            .where(
                Booking.user_id == user_id,
                Payment.status == PaymentStatus.SUCCESSFUL.value,
            )
        )
    ).scalar_one()
    return Decimal(str(total))
