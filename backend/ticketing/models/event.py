"""
Event catalogue: events, venues, sponsors, staff and their join tables.

Key design decisions:
- An event is linked to its venue through `event_venues`, keyed by event,
  so each event has at most one venue
- `duration` is in hours; the end date is derived, never stored
- Index on `start_date` for the chronological listing
"""

from datetime import timedelta

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, CheckConstraint, Numeric
from sqlalchemy.orm import relationship

from ticketing.db.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    duration = Column(Integer, nullable=False)
    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    organizer = relationship("User", back_populates="events")
    tickets = relationship("Ticket", back_populates="event")
    venue_link = relationship("EventVenue", back_populates="event", uselist=False)

    __table_args__ = (
        CheckConstraint("duration > 0", name="check_event_duration_positive"),
        Index("ix_events_start_date", "start_date"),
    )

    @property
    def end_date(self):
        return self.start_date + timedelta(hours=self.duration)

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title})>"


class Venue(Base, TimestampMixin):
    __tablename__ = "venues"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=True)
    capacity = Column(Integer, nullable=True)
    contact_info = Column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Venue(id={self.id}, name={self.name})>"


class EventVenue(Base):
    __tablename__ = "event_venues"

    event_id = Column(Integer, ForeignKey("events.id"), primary_key=True)
    venue_id = Column(Integer, ForeignKey("venues.id"), nullable=False, index=True)

    event = relationship("Event", back_populates="venue_link")
    venue = relationship("Venue")


class Sponsor(Base, TimestampMixin):
    __tablename__ = "sponsors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    contribution = Column(Numeric(12, 2), nullable=True)


class EventSponsor(Base):
    __tablename__ = "event_sponsors"

    event_id = Column(Integer, ForeignKey("events.id"), primary_key=True)
    sponsor_id = Column(Integer, ForeignKey("sponsors.id"), primary_key=True)


class Staff(Base, TimestampMixin):
    __tablename__ = "staff"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    role = Column(String(100), nullable=True)


class EventStaff(Base):
    __tablename__ = "event_staff"

    event_id = Column(Integer, ForeignKey("events.id"), primary_key=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), primary_key=True)
    assignment = Column(String(255), nullable=True)
