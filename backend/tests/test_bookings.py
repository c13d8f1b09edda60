"""
Tests for booking endpoints including concurrency scenarios.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from ticketing.core.exceptions import Conflict, NotFound
from ticketing.models import Booking, Payment, Ticket, UserRole
from ticketing.services import booking_service
from ticketing.services.booking_service import create_booking, get_total_paid, repair_missing_payments

from conftest import make_ticket, make_user, session_headers


async def _count(database, model, *conditions) -> int:
    async with database.session() as session:
        query = select(func.count()).select_from(model)
        if conditions:
            query = query.where(*conditions)
        return (await session.execute(query)).scalar_one()


async def _availability(database, ticket_id: int) -> int:
    async with database.session() as session:
        return (
            await session.execute(select(Ticket.availability).where(Ticket.id == ticket_id))
        ).scalar_one()


@pytest.mark.asyncio
async def test_book_last_ticket(client: AsyncClient, database, customer, customer_headers, last_ticket):
    """Booking the last unit confirms it, records the payment and empties inventory."""
    response = await client.post("/api/bookings", json={"ticketId": 300}, headers=customer_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Test Concert"
    assert data["ticketCategory"] == "VIP"
    assert data["price"] == 500
    assert data["bookingStatus"] == "Confirmed"
    assert data["bookingDate"] == date.today().isoformat()

    async with database.session() as session:
        booking = await session.get(Booking, data["bookingId"])
        assert booking.user_id == customer.id
        assert booking.ticket_id == 300
        assert booking.status == "Confirmed"

        payment = (
            await session.execute(select(Payment).where(Payment.booking_id == booking.id))
        ).scalar_one()
        assert payment.amount == Decimal("500")
        assert payment.status == "Successful"
        assert payment.method == "UPI"

    assert await _availability(database, 300) == 0


@pytest.mark.asyncio
async def test_book_accepts_snake_case_body(client: AsyncClient, customer_headers, plenty_ticket):
    response = await client.post(
        "/api/bookings", json={"ticket_id": plenty_ticket.id}, headers=customer_headers
    )
    assert response.status_code == 201
    assert response.json()["price"] == 120.5


@pytest.mark.asyncio
async def test_book_unauthenticated(client: AsyncClient, database, last_ticket):
    """Booking without a session returns 401 and touches nothing."""
    response = await client.post("/api/bookings", json={"ticketId": last_ticket.id})
    assert response.status_code == 401
    assert await _availability(database, last_ticket.id) == 1


@pytest.mark.asyncio
async def test_book_sold_out(client: AsyncClient, database, customer_headers, sold_out_ticket):
    """Booking a sold-out ticket returns 409 and writes no rows."""
    response = await client.post(
        "/api/bookings", json={"ticketId": sold_out_ticket.id}, headers=customer_headers
    )
    assert response.status_code == 409
    assert response.json() == {"error": "Sold out"}
    assert await _count(database, Booking) == 0
    assert await _count(database, Payment) == 0
    assert await _availability(database, sold_out_ticket.id) == 0


@pytest.mark.asyncio
async def test_book_unknown_ticket(client: AsyncClient, customer_headers, test_event):
    response = await client.post("/api/bookings", json={"ticketId": 9999}, headers=customer_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Ticket not found"}


@pytest.mark.asyncio
async def test_book_invalid_body(client: AsyncClient, customer_headers):
    response = await client.post("/api/bookings", json={"ticketId": "abc"}, headers=customer_headers)
    assert response.status_code == 400
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_payment_failure_rolls_back_everything(
    client: AsyncClient, database, customer_headers, last_ticket, monkeypatch
):
    """If the payment insert fails the decrement and booking are undone."""

    async def failing_payment(*args, **kwargs):
        raise SQLAlchemyError("payment insert failed")

    monkeypatch.setattr(booking_service, "_record_payment", failing_payment)

    response = await client.post(
        "/api/bookings", json={"ticketId": last_ticket.id}, headers=customer_headers
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to create booking"}
    assert await _count(database, Booking) == 0
    assert await _count(database, Payment) == 0
    assert await _availability(database, last_ticket.id) == 1


@pytest.mark.asyncio
async def test_concurrent_booking_last_ticket(database, db_session, last_ticket):
    """
    CRITICAL TEST: Concurrent requests for the last ticket.

    Exactly one attempt succeeds; every other attempt is told the ticket
    is sold out, and availability never goes below zero.
    """
    users = [
        await make_user(db_session, f"Racer{i}", UserRole.CUSTOMER)
        for i in range(10)
    ]

    async def attempt(user_id: int) -> str:
        async with database.session() as session:
            try:
                await create_booking(session, user_id, last_ticket.id)
                return "booked"
            except Conflict:
                return "sold_out"

    outcomes = await asyncio.gather(*(attempt(u.id) for u in users))

    assert outcomes.count("booked") == 1
    assert outcomes.count("sold_out") == len(users) - 1
    assert await _availability(database, last_ticket.id) == 0
    assert await _count(database, Booking) == 1
    assert await _count(database, Payment) == 1


@pytest.mark.asyncio
async def test_concurrent_bookings_never_exceed_stock(database, db_session, test_event):
    """With 3 units and 8 buyers, exactly 3 bookings land."""
    ticket = await make_ticket(db_session, test_event, availability=3, price="75")
    users = [
        await make_user(db_session, f"Buyer{i}", UserRole.CUSTOMER)
        for i in range(8)
    ]

    async def attempt(user_id: int) -> bool:
        async with database.session() as session:
            try:
                await create_booking(session, user_id, ticket.id)
                return True
            except Conflict:
                return False

    outcomes = await asyncio.gather(*(attempt(u.id) for u in users))

    assert sum(outcomes) == 3
    assert await _availability(database, ticket.id) == 0
    assert await _count(database, Payment) == await _count(database, Booking) == 3


@pytest.mark.asyncio
async def test_create_booking_unknown_ticket_service(db_session, customer):
    with pytest.raises(NotFound):
        await create_booking(db_session, customer.id, 12345)


@pytest.mark.asyncio
async def test_list_my_bookings(client: AsyncClient, customer_headers, other_customer, plenty_ticket):
    await client.post("/api/bookings", json={"ticketId": plenty_ticket.id}, headers=customer_headers)
    await client.post("/api/bookings", json={"ticketId": plenty_ticket.id}, headers=customer_headers)
    await client.post(
        "/api/bookings", json={"ticketId": plenty_ticket.id}, headers=session_headers(other_customer)
    )

    response = await client.get("/api/bookings/me", headers=customer_headers)
    assert response.status_code == 200
    bookings = response.json()
    assert len(bookings) == 2
    assert all(b["title"] == "Test Concert" for b in bookings)
    assert bookings[0]["bookingId"] > bookings[1]["bookingId"]
    assert "startDate" in bookings[0]


@pytest.mark.asyncio
async def test_cancel_booking_keeps_inventory(client: AsyncClient, database, customer_headers, plenty_ticket):
    """Cancelling flips status only; availability is not restored."""
    booked = await client.post(
        "/api/bookings", json={"ticketId": plenty_ticket.id}, headers=customer_headers
    )
    booking_id = booked.json()["bookingId"]

    response = await client.post(f"/api/bookings/{booking_id}/cancel", headers=customer_headers)
    assert response.status_code == 200
    assert response.json() == {"ok": True, "bookingId": booking_id, "status": "Cancelled"}
    assert await _availability(database, plenty_ticket.id) == 99

    again = await client.post(f"/api/bookings/{booking_id}/cancel", headers=customer_headers)
    assert again.status_code == 400


@pytest.mark.asyncio
async def test_cancel_someone_elses_booking(client: AsyncClient, customer_headers, other_customer, plenty_ticket):
    booked = await client.post(
        "/api/bookings", json={"ticketId": plenty_ticket.id}, headers=session_headers(other_customer)
    )
    booking_id = booked.json()["bookingId"]

    response = await client.post(f"/api/bookings/{booking_id}/cancel", headers=customer_headers)
    assert response.status_code == 403
    assert response.json() == {"error": "Not your booking"}


@pytest.mark.asyncio
async def test_cancel_unknown_booking(client: AsyncClient, customer_headers):
    response = await client.post("/api/bookings/4242/cancel", headers=customer_headers)
    assert response.status_code == 403


async def _insert_booking_without_payment(session, user_id: int, ticket_id: int) -> Booking:
    booking = Booking(user_id=user_id, ticket_id=ticket_id, booking_date=date(2024, 5, 1), status="Confirmed")
    session.add(booking)
    await session.commit()
    return booking


@pytest.mark.asyncio
async def test_repair_missing_payments_as_admin(
    client: AsyncClient, database, db_session, customer, other_customer, admin_headers, plenty_ticket
):
    await _insert_booking_without_payment(db_session, customer.id, plenty_ticket.id)
    await _insert_booking_without_payment(db_session, other_customer.id, plenty_ticket.id)

    response = await client.post("/api/bookings/fix-payments", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Payments created successfully", "count": 2}

    async with database.session() as session:
        payments = (await session.execute(select(Payment).order_by(Payment.id))).scalars().all()
    assert [p.amount for p in payments] == [Decimal("120.50"), Decimal("120.50")]
    assert all(p.payment_date == date(2024, 5, 1) for p in payments)
    assert all(p.status == "Successful" for p in payments)

    again = await client.post("/api/bookings/fix-payments", headers=admin_headers)
    assert again.json() == {"message": "All bookings already have payments", "count": 0}


@pytest.mark.asyncio
async def test_repair_missing_payments_scoped_to_caller(
    client: AsyncClient, database, db_session, customer, customer_headers, other_customer, plenty_ticket
):
    await _insert_booking_without_payment(db_session, customer.id, plenty_ticket.id)
    theirs = await _insert_booking_without_payment(db_session, other_customer.id, plenty_ticket.id)

    response = await client.post("/api/bookings/fix-payments", headers=customer_headers)
    assert response.json()["count"] == 1
    assert await _count(database, Payment, Payment.booking_id == theirs.id) == 0


@pytest.mark.asyncio
async def test_repair_missing_payments_service(db_session, customer, plenty_ticket):
    assert await repair_missing_payments(db_session) == 0
    await _insert_booking_without_payment(db_session, customer.id, plenty_ticket.id)
    assert await repair_missing_payments(db_session, user_id=customer.id) == 1


@pytest.mark.asyncio
async def test_total_paid(client: AsyncClient, db_session, customer, customer_headers, plenty_ticket, last_ticket):
    await client.post("/api/bookings", json={"ticketId": plenty_ticket.id}, headers=customer_headers)
    await client.post("/api/bookings", json={"ticketId": last_ticket.id}, headers=customer_headers)

    response = await client.get("/api/users/me/total-paid", headers=customer_headers)
    assert response.status_code == 200
    assert response.json() == {"totalPaid": 620.5}
    assert await get_total_paid(db_session, customer.id) == Decimal("620.50")


@pytest.mark.asyncio
async def test_total_paid_without_bookings(client: AsyncClient, customer_headers):
    response = await client.get("/api/users/me/total-paid", headers=customer_headers)
    assert response.json() == {"totalPaid": 0}
