"""
Event service: public catalogue reads plus role-gated event and ticket management.

Organizers may only manage events they own; Admins may manage any event.
"""

from datetime import timedelta
from decimal import Decimal

from sqlalchemy import select, func, delete, exists
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.security import Identity
from ticketing.core.exceptions import Conflict, Forbidden, Internal, InvalidArgument, NotFound
from ticketing.core.logging import get_logger
from ticketing.models.booking import Booking
from ticketing.models.event import Event, EventSponsor, EventStaff, EventVenue, Sponsor, Staff, Venue
from ticketing.models.feedback import Feedback
from ticketing.models.ticket import Ticket
from ticketing.models.user import User, UserRole
from ticketing.schemas.event import (
    EventCreate,
    EventDetail,
    EventDetailResponse,
    EventFeedbackResponse,
    EventSummary,
    EventUpdate,
    SponsorResponse,
    StaffResponse,
    TicketCreate,
    TicketResponse,
    TicketUpdate,
    VenueResponse,
)

logger = get_logger(__name__)


def _avg_rating():
    return (
        select(func.avg(Feedback.rating))
        .where(Feedback.event_id == Event.id)
        .scalar_subquery()
    )


def _catalogue_query():
    return (
        select(Event, Venue.name, Venue.address, Venue.capacity, _avg_rating().label("avg_rating"))
        .outerjoin(EventVenue, EventVenue.event_id == Event.id)
        .outerjoin(Venue, Venue.id == EventVenue.venue_id)
    )


def _summary_fields(event: Event, venue_name, venue_address, avg_rating) -> dict:
    return dict(
        event_id=event.id,
        title=event.title,
        category=event.category,
        event_description=event.description,
        start_date=event.start_date,
        end_date=event.start_date + timedelta(hours=event.duration),
        duration=event.duration,
        organizer_id=event.organizer_id,
        venue_name=venue_name,
        venue_address=venue_address,
        avg_rating=round(float(avg_rating), 2) if avg_rating is not None else None,
    )


async def list_events(db: AsyncSession, page: int = 1, limit: int = 12) -> list[EventSummary]:
    """List events by start date with venue and average rating."""
    result = await db.execute(
        _catalogue_query()
        .order_by(Event.start_date.asc(), Event.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return [
        EventSummary(**_summary_fields(event, name, address, avg))
        for event, name, address, _capacity, avg in result
    ]


async def get_event_detail(db: AsyncSession, event_id: int) -> EventDetailResponse:
    row = (await db.execute(_catalogue_query().where(Event.id == event_id))).one_or_none()
    if row is None:
        raise NotFound("Event not found")
    event, name, address, capacity, avg = row

    tickets = await db.execute(
        select(Ticket).where(Ticket.event_id == event_id).order_by(Ticket.price.asc(), Ticket.id.asc())
    )
    sponsors = await db.execute(
        select(Sponsor.id, Sponsor.name, Sponsor.contribution)
        .join(EventSponsor, EventSponsor.sponsor_id == Sponsor.id)
        .where(EventSponsor.event_id == event_id)
    )
    staff = await db.execute(
        select(Staff.id, Staff.name, Staff.role, EventStaff.assignment)
        .join(EventStaff, EventStaff.staff_id == Staff.id)
        .where(EventStaff.event_id == event_id)
    )
    feedback = await db.execute(
        select(User.name, Feedback.rating, Feedback.comments)
        .join(User, User.id == Feedback.user_id)
        .where(Feedback.event_id == event_id)
        .order_by(Feedback.rating.desc())
    )

    return EventDetailResponse(
        event=EventDetail(**_summary_fields(event, name, address, avg), capacity=capacity),
        tickets=[
            TicketResponse(ticket_id=t.id, category=t.category, price=t.price, availability=t.availability)
            for t in tickets.scalars()
        ],
        sponsors=[
            SponsorResponse(sponsor_id=sid, sponsor_name=sname, contribution=contribution)
            for sid, sname, contribution in sponsors
        ],
        staff=[
            StaffResponse(staff_id=sid, staff_name=sname, staff_role=srole, assignment=assignment)
            for sid, sname, srole, assignment in staff
        ],
        feedback=[
            EventFeedbackResponse(user_name=uname, rating=rating, comments=comments)
            for uname, rating, comments in feedback
        ],
    )


async def list_venues(db: AsyncSession) -> list[VenueResponse]:
    result = await db.execute(select(Venue).order_by(Venue.name.asc()))
    return [
        VenueResponse(
            venue_id=v.id,
            venue_name=v.name,
            venue_address=v.address,
            capacity=v.capacity,
            contact_info=v.contact_info,
        )
        for v in result.scalars()
    ]


async def _require_venue(db: AsyncSession, venue_id: int) -> None:
    if await db.get(Venue, venue_id) is None:
        raise NotFound("Venue not found")


async def _owned_event(db: AsyncSession, identity: Identity, event_id: int) -> Event:
    event = await db.get(Event, event_id)
    if event is None:
        raise NotFound("Event not found")
    if identity.role != UserRole.ADMIN and event.organizer_id != identity.user_id:
        logger.warning("event_ownership_denied", event_id=event_id, user_id=identity.user_id)
        raise Forbidden("Not your event")
    return event


async def _commit(db: AsyncSession, failure_message: str, **log_fields) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("event_write_failed", error=str(e), **log_fields)
        raise Internal(failure_message) from e


async def create_event(db: AsyncSession, identity: Identity, data: EventCreate) -> Event:
    """Create an event linked to a venue. Admins may assign another organizer."""
    organizer_id = identity.user_id
    if identity.role == UserRole.ADMIN and data.organizer_id is not None:
        if await db.get(User, data.organizer_id) is None:
            raise NotFound("Organizer not found")
        organizer_id = data.organizer_id

    await _require_venue(db, data.venue_id)

    event = Event(
        title=data.title,
        category=data.category,
        description=data.event_description,
        start_date=data.start_date,
        duration=data.duration,
        organizer_id=organizer_id,
    )
    db.add(event)
    await db.flush()
    db.add(EventVenue(event_id=event.id, venue_id=data.venue_id))
    await _commit(db, "Failed to create event", organizer_id=organizer_id)

    logger.info("event_created", event_id=event.id, title=event.title, organizer_id=organizer_id)
    return event


async def update_event(db: AsyncSession, identity: Identity, event_id: int, data: EventUpdate) -> Event:
    event = await _owned_event(db, identity, event_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    venue_id = changes.pop("venue_id", None)
    if "event_description" in changes:
        changes["description"] = changes.pop("event_description")
    for field, value in changes.items():
        setattr(event, field, value)

    if venue_id is not None:
        await _require_venue(db, venue_id)
        link = await db.get(EventVenue, event_id)
        if link is None:
            db.add(EventVenue(event_id=event_id, venue_id=venue_id))
        else:
            link.venue_id = venue_id

    await _commit(db, "Failed to update event", event_id=event_id)
    logger.info("event_updated", event_id=event_id, fields=sorted(changes))
    return event


async def _ticket_has_bookings(db: AsyncSession, *conditions) -> bool:
    query = select(
        exists().where(Booking.ticket_id == Ticket.id, *conditions)
    )
    return bool((await db.execute(query)).scalar())


async def delete_event(db: AsyncSession, identity: Identity, event_id: int) -> None:
    """Delete an event and everything hanging off it. Refused once tickets are booked."""
    await _owned_event(db, identity, event_id)

    if await _ticket_has_bookings(db, Ticket.event_id == event_id):
        raise Conflict("Event has bookings and cannot be deleted")

    for statement in (
        delete(EventVenue).where(EventVenue.event_id == event_id),
        delete(Ticket).where(Ticket.event_id == event_id),
        delete(EventSponsor).where(EventSponsor.event_id == event_id),
        delete(EventStaff).where(EventStaff.event_id == event_id),
        delete(Feedback).where(Feedback.event_id == event_id),
        delete(Event).where(Event.id == event_id),
    ):
        await db.execute(statement)
    await _commit(db, "Failed to delete event", event_id=event_id)

    logger.info("event_deleted", event_id=event_id, user_id=identity.user_id)


def _validate_ticket_numbers(price, availability) -> None:
    if price is not None and price < 0:
        raise InvalidArgument("price must be >= 0")
    if availability is not None and availability < 0:
        raise InvalidArgument("availability must be >= 0")


async def add_ticket(db: AsyncSession, identity: Identity, event_id: int, data: TicketCreate) -> Ticket:
    await _owned_event(db, identity, event_id)
    _validate_ticket_numbers(data.price, data.availability)

    ticket = Ticket(
        event_id=event_id,
        category=data.t_category,
        price=Decimal(str(data.price)),
        availability=data.availability,
    )
    db.add(ticket)
    await _commit(db, "Failed to add ticket", event_id=event_id)

    logger.info("ticket_created", ticket_id=ticket.id, event_id=event_id, availability=ticket.availability)
    return ticket


async def _owned_ticket(db: AsyncSession, identity: Identity, ticket_id: int) -> Ticket:
    ticket = await db.get(Ticket, ticket_id)
    if ticket is None:
        raise NotFound("Ticket not found")
    await _owned_event(db, identity, ticket.event_id)
    return ticket


async def update_ticket(db: AsyncSession, identity: Identity, ticket_id: int, data: TicketUpdate) -> Ticket:
    ticket = await _owned_ticket(db, identity, ticket_id)
    _validate_ticket_numbers(data.price, data.availability)

    if data.t_category is not None:
        ticket.category = data.t_category
    if data.price is not None:
        ticket.price = Decimal(str(data.price))
    if data.availability is not None:
        ticket.availability = data.availability

    await _commit(db, "Failed to update ticket", ticket_id=ticket_id)
    logger.info("ticket_updated", ticket_id=ticket_id, availability=ticket.availability)
    return ticket


async def delete_ticket(db: AsyncSession, identity: Identity, ticket_id: int) -> None:
    await _owned_ticket(db, identity, ticket_id)

    if await _ticket_has_bookings(db, Ticket.id == ticket_id):
        raise Conflict("Ticket has bookings and cannot be deleted")

    await db.execute(delete(Ticket).where(Ticket.id == ticket_id))
    await _commit(db, "Failed to delete ticket", ticket_id=ticket_id)
    logger.info("ticket_deleted", ticket_id=ticket_id)
