from ticketing.models.user import User, UserRole
from ticketing.models.event import Event, Venue, EventVenue, Sponsor, EventSponsor, Staff, EventStaff
from ticketing.models.ticket import Ticket
from ticketing.models.booking import Booking, BookingStatus, Payment, PaymentStatus
from ticketing.models.feedback import Feedback

__all__ = [
    "User", "UserRole",
    "Event", "Venue", "EventVenue", "Sponsor", "EventSponsor", "Staff", "EventStaff",
    "Ticket",
    "Booking", "BookingStatus", "Payment", "PaymentStatus",
    "Feedback",
]
