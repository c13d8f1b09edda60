"""
Pydantic schemas for booking, cancellation, payment repair and feedback.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import Field

from ticketing.schemas.base import CamelModel


class BookingCreate(CamelModel):
    ticket_id: int = Field(..., gt=0)


class BookingConfirmation(CamelModel):
    booking_id: int
    title: str
    ticket_category: str
    price: float
    booking_date: date
    booking_status: str


class BookingSummary(BookingConfirmation):
    start_date: datetime


class BookingCancelResponse(CamelModel):
    ok: bool = True
    booking_id: int
    status: str


class PaymentRepairResponse(CamelModel):
    message: str
    count: int


class FeedbackCreate(CamelModel):
    event_id: int
    rating: int
    comments: Optional[str] = Field(None, max_length=1000)


class FeedbackResponse(CamelModel):
    rating: int
    comments: Optional[str] = None
    event_title: str
    event_id: int
