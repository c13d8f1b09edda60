"""
Pydantic schemas for events, venues and tickets.
"""

from datetime import datetime
from typing import Optional
from pydantic import AliasChoices, Field

from ticketing.schemas.base import CamelModel


class EventCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    event_description: Optional[str] = Field(None, max_length=1000)
    start_date: datetime
    duration: int = Field(..., gt=0)
    venue_id: int
    organizer_id: Optional[int] = None


class EventUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    event_description: Optional[str] = Field(None, max_length=1000)
    start_date: Optional[datetime] = None
    duration: Optional[int] = Field(None, gt=0)
    venue_id: Optional[int] = None


class EventCreated(CamelModel):
    event_id: int


class EventSummary(CamelModel):
    event_id: int
    title: str
    category: str
    event_description: Optional[str] = None
    start_date: datetime
    end_date: datetime
    duration: int
    organizer_id: int
    venue_name: Optional[str] = None
    venue_address: Optional[str] = None
    avg_rating: Optional[float] = None


class EventDetail(EventSummary):
    capacity: Optional[int] = None


class TicketCreate(CamelModel):
    t_category: str = Field(
        ..., min_length=1, max_length=50, validation_alias=AliasChoices("tCategory", "category", "t_category")
    )
    price: float
    availability: int


class TicketUpdate(CamelModel):
    t_category: Optional[str] = Field(
        None, min_length=1, max_length=50, validation_alias=AliasChoices("tCategory", "category", "t_category")
    )
    price: Optional[float] = None
    availability: Optional[int] = None


class TicketCreated(CamelModel):
    ticket_id: int


class TicketResponse(CamelModel):
    ticket_id: int
    category: str
    price: float
    availability: int


class SponsorResponse(CamelModel):
    sponsor_id: int
    sponsor_name: str
    contribution: Optional[float] = None


class StaffResponse(CamelModel):
    staff_id: int
    staff_name: str
    staff_role: Optional[str] = None
    assignment: Optional[str] = None


class EventFeedbackResponse(CamelModel):
    user_name: str
    rating: int
    comments: Optional[str] = None


class EventDetailResponse(CamelModel):
    event: EventDetail
    tickets: list[TicketResponse]
    sponsors: list[SponsorResponse]
    staff: list[StaffResponse]
    feedback: list[EventFeedbackResponse]


class VenueResponse(CamelModel):
    venue_id: int
    venue_name: str
    venue_address: Optional[str] = None
    capacity: Optional[int] = None
    contact_info: Optional[str] = None


class OkResponse(CamelModel):
    ok: bool = True
