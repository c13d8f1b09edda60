"""
Booking and Payment models.

Key design decisions:
- One booking claims exactly one ticket
- Status field allows cancellation without deleting records
- Payment is 1:1 with booking (unique booking_id); both rows are written
  in the same transaction by the booking service
- `amount` is the ticket price captured at booking time
"""

import enum
from datetime import date

from sqlalchemy import Column, Integer, String, Date, ForeignKey, CheckConstraint, Numeric
from sqlalchemy.orm import relationship

from ticketing.db.base import Base, TimestampMixin


class BookingStatus(str, enum.Enum):
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


class PaymentStatus(str, enum.Enum):
    SUCCESSFUL = "Successful"
    FAILED = "Failed"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    ticket_id = Column(Integer, ForeignKey("tickets.id"), nullable=False, index=True)
    booking_date = Column(Date, nullable=False, default=date.today)
    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value)

    # Relationships
    user = relationship("User", back_populates="bookings")
    ticket = relationship("Ticket", back_populates="bookings")
    payment = relationship("Payment", back_populates="booking", uselist=False)

    __table_args__ = (
        CheckConstraint("status IN ('Confirmed', 'Cancelled')", name="check_booking_status"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, user={self.user_id}, ticket={self.ticket_id}, status={self.status})>"


class Payment(Base, TimestampMixin):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, unique=True)
    amount = Column(Numeric(10, 2), nullable=False)
    payment_date = Column(Date, nullable=False, default=date.today)
    method = Column(String(30), nullable=False)
    status = Column(String(20), nullable=False, default=PaymentStatus.SUCCESSFUL.value)

    booking = relationship("Booking", back_populates="payment")

    __table_args__ = (
        CheckConstraint("amount >= 0", name="check_payment_amount_non_negative"),
        CheckConstraint("status IN ('Successful', 'Failed')", name="check_payment_status"),
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, booking={self.booking_id}, amount={self.amount})>"
