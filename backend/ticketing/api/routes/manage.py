"""
Role-gated management endpoints.

Users: Admin only. Events and tickets: Organizer or Admin, with Organizers
limited to their own events.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.api.deps import Identity, require_admin, require_organizer
from ticketing.db.session import get_db
from ticketing.schemas.event import (
    EventCreate,
    EventCreated,
    EventUpdate,
    OkResponse,
    TicketCreate,
    TicketCreated,
    TicketUpdate,
)
from ticketing.schemas.user import UserCreate, UserCreated, UserResponse, UserUpdate
from ticketing.services import event_service, user_service

router = APIRouter(prefix="/manage", tags=["Management"])


# --- Users (Admin only) ---

@router.post("/users", response_model=UserCreated, status_code=status.HTTP_201_CREATED)
async def create_user_endpoint(
    user_data: UserCreate,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.create_user(db, user_data)
    return UserCreated(user_id=user.id)


@router.get("/users", response_model=list[UserResponse])
async def list_users_endpoint(
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    users = await user_service.list_users(db)
    return [UserResponse.model_validate(u) for u in users]


@router.put("/users/{user_id}", response_model=OkResponse)
async def update_user_endpoint(
    user_id: int,
    user_data: UserUpdate,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await user_service.update_user(db, user_id, user_data)
    return OkResponse()


@router.delete("/users/{user_id}", response_model=OkResponse)
async def delete_user_endpoint(
    user_id: int,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await user_service.delete_user(db, user_id)
    return OkResponse()


# --- Events (Organizer / Admin) ---

@router.post("/events", response_model=EventCreated, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    identity: Identity = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    event = await event_service.create_event(db, identity, event_data)
    return EventCreated(event_id=event.id)


@router.put("/events/{event_id}", response_model=OkResponse)
async def update_event_endpoint(
    event_id: int,
    event_data: EventUpdate,
    identity: Identity = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    await event_service.update_event(db, identity, event_id, event_data)
    return OkResponse()


@router.delete("/events/{event_id}", response_model=OkResponse)
async def delete_event_endpoint(
    event_id: int,
    identity: Identity = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    await event_service.delete_event(db, identity, event_id)
    return OkResponse()


# --- Tickets (Organizer / Admin) ---

@router.post("/events/{event_id}/tickets", response_model=TicketCreated, status_code=status.HTTP_201_CREATED)
async def add_ticket_endpoint(
    event_id: int,
    ticket_data: TicketCreate,
    identity: Identity = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    ticket = await event_service.add_ticket(db, identity, event_id, ticket_data)
    return TicketCreated(ticket_id=ticket.id)


@router.put("/tickets/{ticket_id}", response_model=OkResponse)
async def update_ticket_endpoint(
    ticket_id: int,
    ticket_data: TicketUpdate,
    identity: Identity = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    await event_service.update_ticket(db, identity, ticket_id, ticket_data)
    return OkResponse()


@router.delete("/tickets/{ticket_id}", response_model=OkResponse)
async def delete_ticket_endpoint(
    ticket_id: int,
    identity: Identity = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    await event_service.delete_ticket(db, identity, ticket_id)
    return OkResponse()
