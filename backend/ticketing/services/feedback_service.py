"""
Feedback service: attendee-only ratings with upsert semantics.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.exceptions import Forbidden, Internal, InvalidArgument
from ticketing.core.logging import get_logger
from ticketing.models.booking import Booking
from ticketing.models.event import Event
from ticketing.models.feedback import Feedback
from ticketing.models.ticket import Ticket
from ticketing.schemas.booking import FeedbackResponse

logger = get_logger(__name__)

MIN_RATING = 1
MAX_RATING = 5


async def _has_booking_for_event(db: AsyncSession, user_id: int, event_id: int) -> bool:
    result = await db.execute(
        select(Booking.id)
        .join(Ticket, Ticket.id == Booking.ticket_id)
        .where(Booking.user_id == user_id, Ticket.event_id == event_id)
        .limit(1)
    )
    return result.first() is not None


async def _upsert(db: AsyncSession, user_id: int, event_id: int, rating: int, comments: Optional[str]) -> bool:
    """Write the row; returns True when an existing row was updated."""
    existing = await db.get(Feedback, (user_id, event_id))
    if existing is not None:
        existing.rating = rating
        existing.comments = comments
        await db.commit()
        return True

    db.add(Feedback(user_id=user_id, event_id=event_id, rating=rating, comments=comments))
    await db.commit()
    return False


async def submit_feedback(
    db: AsyncSession,
    user_id: int,
    event_id: int,
    rating: int,
    comments: Optional[str] = None,
) -> None:
    """
    Create or replace the caller's feedback for an event.

    Only users holding a booking for one of the event's tickets may rate it.
    Repeating the same submission leaves exactly one row.
    """
    if not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidArgument(f"rating must be {MIN_RATING}-{MAX_RATING}")

    if not await _has_booking_for_event(db, user_id, event_id):
        logger.warning("feedback_rejected", user_id=user_id, event_id=event_id, reason="no_booking")
        raise Forbidden("Feedback allowed for attendees only")

    try:
        try:
            updated = await _upsert(db, user_id, event_id, rating, comments)
        except IntegrityError:
            # A concurrent submission inserted the row first; apply ours over it
            await db.rollback()
            updated = await _upsert(db, user_id, event_id, rating, comments)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("feedback_failed", user_id=user_id, event_id=event_id, error=str(e))
        raise Internal("Failed to submit feedback") from e

    logger.info("feedback_upserted", user_id=user_id, event_id=event_id, rating=rating, updated=updated)


async def list_user_feedback(db: AsyncSession, user_id: int) -> list[FeedbackResponse]:
    result = await db.execute(
        select(Feedback.rating, Feedback.comments, Event.title, Event.id)
        .join(Event, Event.id == Feedback.event_id)
        .where(Feedback.user_id == user_id)
        .order_by(Event.id.desc())
    )
    return [
        FeedbackResponse(rating=rating, comments=comments, event_title=title, event_id=event_id)
        for rating, comments, title, event_id in result
    ]
