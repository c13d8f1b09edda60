"""
Ticket model: a priced allotment under an event.

`availability` is the contended resource. It only goes down through the
conditional decrement in the booking service; the CHECK constraint is the
last line against overselling.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint, Numeric
from sqlalchemy.orm import relationship

from ticketing.db.base import Base, TimestampMixin


class Ticket(Base, TimestampMixin):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    category = Column(String(50), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    availability = Column(Integer, nullable=False, default=0)

    # Relationships
    event = relationship("Event", back_populates="tickets")
    bookings = relationship("Booking", back_populates="ticket")

    __table_args__ = (
        CheckConstraint("availability >= 0", name="check_ticket_availability_non_negative"),
        CheckConstraint("price >= 0", name="check_ticket_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Ticket(id={self.id}, event={self.event_id}, available={self.availability})>"
