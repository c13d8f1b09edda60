"""
Public catalogue endpoints: events and venues.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.db.session import get_db
from ticketing.schemas.event import EventDetailResponse, EventSummary, VenueResponse
from ticketing.services.event_service import get_event_detail, list_events, list_venues

router = APIRouter(prefix="/events", tags=["Events"])
venues_router = APIRouter(prefix="/venues", tags=["Venues"])


@router.get("", response_model=list[EventSummary])
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List events by start date with venue and average rating."""
    return await list_events(db, page, limit)


@router.get("/{event_id}", response_model=EventDetailResponse)
async def get_event_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    """Event details with tickets, sponsors, staff and feedback. Not cached (live availability)."""
    return await get_event_detail(db, event_id)


@venues_router.get("", response_model=list[VenueResponse])
async def list_venues_endpoint(db: AsyncSession = Depends(get_db)):
    return await list_venues(db)
