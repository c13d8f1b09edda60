"""
Pytest fixtures for test database, client, users and catalogue data.

Each test gets a fresh SQLite database file with tables created from the
model metadata, injected into the app factory.
"""

from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.config import get_settings
from ticketing.core.security import create_session_token, hash_password
from ticketing.db.session import Database
from ticketing.main import create_app
from ticketing.models import Event, EventVenue, Ticket, User, UserRole, Venue

PASSWORD = "testpassword123"
# bcrypt is deliberately slow; hash once per test run
PASSWORD_HASH = hash_password(PASSWORD)


def session_headers(user_or_id) -> dict:
    """Cookie header carrying a session for the given user."""
    user_id = getattr(user_or_id, "id", user_or_id)
    cookie_name = get_settings().SESSION_COOKIE_NAME
    return {"Cookie": f"{cookie_name}={create_session_token(user_id)}"}


async def make_user(session: AsyncSession, name: str, role: UserRole, email: str = None) -> User:
    user = User(
        name=name,
        email=email or f"{name.lower()}@example.com",
        password_hash=PASSWORD_HASH,
        role=role.value,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def make_ticket(
    session: AsyncSession,
    event: Event,
    availability: int,
    price: str = "500",
    category: str = "General",
    ticket_id: int = None,
) -> Ticket:
    ticket = Ticket(
        id=ticket_id,
        event_id=event.id,
        category=category,
        price=Decimal(price),
        availability=availability,
    )
    session.add(ticket)
    await session.commit()
    await session.refresh(ticket)
    return ticket


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'ticketing_test.db'}")
    await db.create_all()
    yield db
    await db.drop_all()
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture
async def client(database: Database) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against an app wired to the test database."""
    app = create_app(database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def customer(db_session: AsyncSession) -> User:
    return await make_user(db_session, "Casey", UserRole.CUSTOMER)


@pytest_asyncio.fixture
async def other_customer(db_session: AsyncSession) -> User:
    return await make_user(db_session, "Morgan", UserRole.CUSTOMER)


@pytest_asyncio.fixture
async def organizer(db_session: AsyncSession) -> User:
    return await make_user(db_session, "Olive", UserRole.ORGANIZER)


@pytest_asyncio.fixture
async def other_organizer(db_session: AsyncSession) -> User:
    return await make_user(db_session, "Oscar", UserRole.ORGANIZER)


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> User:
    return await make_user(db_session, "Ada", UserRole.ADMIN)


@pytest.fixture
def customer_headers(customer: User) -> dict:
    return session_headers(customer)


@pytest.fixture
def organizer_headers(organizer: User) -> dict:
    return session_headers(organizer)


@pytest.fixture
def admin_headers(admin: User) -> dict:
    return session_headers(admin)


@pytest_asyncio.fixture
async def venue(db_session: AsyncSession) -> Venue:
    venue = Venue(name="Riverside Arena", address="1 River Rd", capacity=5000)
    db_session.add(venue)
    await db_session.commit()
    await db_session.refresh(venue)
    return venue


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession, organizer: User, venue: Venue) -> Event:
    """An event owned by `organizer`, held at `venue`."""
    event = Event(
        title="Test Concert",
        category="Music",
        description="A test event",
        start_date=datetime.now(timezone.utc) + timedelta(days=30),
        duration=3,
        organizer_id=organizer.id,
    )
    db_session.add(event)
    await db_session.flush()
    db_session.add(EventVenue(event_id=event.id, venue_id=venue.id))
    await db_session.commit()
    await db_session.refresh(event)
    return event


@pytest_asyncio.fixture
async def last_ticket(db_session: AsyncSession, test_event: Event) -> Ticket:
    """Ticket #300 priced 500 with a single unit left."""
    return await make_ticket(db_session, test_event, availability=1, price="500", category="VIP", ticket_id=300)


@pytest_asyncio.fixture
async def sold_out_ticket(db_session: AsyncSession, test_event: Event) -> Ticket:
    return await make_ticket(db_session, test_event, availability=0, price="250", category="Balcony")


@pytest_asyncio.fixture
async def plenty_ticket(db_session: AsyncSession, test_event: Event) -> Ticket:
    return await make_ticket(db_session, test_event, availability=100, price="120.50", category="General")
