"""
Booking endpoints: reserve a ticket, list and cancel bookings, repair payments.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.api.deps import Identity, require_auth, require_known_user
from ticketing.db.session import get_db
from ticketing.models.user import UserRole
from ticketing.schemas.booking import (
    BookingCancelResponse,
    BookingConfirmation,
    BookingCreate,
    BookingSummary,
    PaymentRepairResponse,
)
from ticketing.services.booking_service import (
    cancel_booking,
    create_booking,
    list_user_bookings,
    repair_missing_payments,
)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("", response_model=BookingConfirmation, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    booking_data: BookingCreate,
    identity: Identity = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """
    Book one ticket.

    The availability check, the decrement and the booking + payment inserts
    happen in one transaction; a sold-out ticket returns 409 and leaves no
    rows behind.
    """
    return await create_booking(db, identity.user_id, booking_data.ticket_id)


@router.get("/me", response_model=list[BookingSummary])
async def list_my_bookings(
    identity: Identity = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await list_user_bookings(db, identity.user_id)


@router.post("/{booking_id}/cancel", response_model=BookingCancelResponse)
async def cancel_booking_endpoint(
    booking_id: int,
    identity: Identity = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking. The ticket is not returned to inventory."""
    booking = await cancel_booking(db, identity.user_id, booking_id)
    return BookingCancelResponse(booking_id=booking.id, status=booking.status)


@router.post("/fix-payments", response_model=PaymentRepairResponse)
async def fix_payments_endpoint(
    identity: Identity = Depends(require_known_user),
    db: AsyncSession = Depends(get_db),
):
    """Backfill missing payments: all bookings for Admins, own bookings otherwise."""
    scope = None if identity.role == UserRole.ADMIN else identity.user_id
    count = await repair_missing_payments(db, user_id=scope)
    if count == 0:
        return PaymentRepairResponse(message="All bookings already have payments", count=0)
    return PaymentRepairResponse(message="Payments created successfully", count=count)
