from ticketing.schemas.user import (
    LoginRequest, LoginResponse, UserResponse, UserCreate, UserUpdate, UserCreated, TotalPaidResponse,
)
from ticketing.schemas.event import (
    EventCreate, EventUpdate, EventCreated, EventSummary, EventDetailResponse,
    TicketCreate, TicketUpdate, TicketCreated, TicketResponse, VenueResponse, OkResponse,
)
from ticketing.schemas.booking import (
    BookingCreate, BookingConfirmation, BookingSummary, BookingCancelResponse,
    PaymentRepairResponse, FeedbackCreate, FeedbackResponse,
)

__all__ = [
    "LoginRequest", "LoginResponse", "UserResponse", "UserCreate", "UserUpdate", "UserCreated",
    "TotalPaidResponse",
    "EventCreate", "EventUpdate", "EventCreated", "EventSummary", "EventDetailResponse",
    "TicketCreate", "TicketUpdate", "TicketCreated", "TicketResponse", "VenueResponse", "OkResponse",
    "BookingCreate", "BookingConfirmation", "BookingSummary", "BookingCancelResponse",
    "PaymentRepairResponse", "FeedbackCreate", "FeedbackResponse",
]
