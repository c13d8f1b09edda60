"""
Locust Load Test Suite

Needs a running API and an existing Admin account:
  export LOAD_ADMIN_EMAIL=admin@example.com LOAD_ADMIN_PASSWORD=...

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test overselling of a scarce ticket
  locust -f locustfile.py --tags browse       # Catalogue reads
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import os
import random
import string
from datetime import datetime, timezone, timedelta

from locust import HttpUser, task, between, tag, events

ADMIN_EMAIL = os.getenv("LOAD_ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("LOAD_ADMIN_PASSWORD", "admin")
SCARCE_TICKETS = int(os.getenv("LOAD_SCARCE_TICKETS", "10"))
PASSWORD = "loadtest123"

# Shared state
EVENT_IDS = []
SCARCE_TICKET_ID = None


def random_email():
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=10))
    return f"load_{suffix}@example.com"


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"SETUP: one ticket with {SCARCE_TICKETS} units will be contended")
    print("=" * 60)


class _CustomerMixin:
    """Creates a fresh Customer through the admin API and logs in as them."""

    def login_as_new_customer(self) -> bool:
        admin = self.client.post("/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
        if admin.status_code != 200:
            return False

        email = random_email()
        self.client.post("/api/manage/users", json={
            "name": "Load Customer",
            "email": email,
            "role": "Customer",
            "password": PASSWORD,
        })
        self.client.post("/api/logout")

        # The session cookie is kept by the client from here on
        resp = self.client.post("/api/login", json={"email": email, "password": PASSWORD})
        return resp.status_code == 200


def _ensure_scarce_ticket(client):
    """First user in creates an event with one scarce ticket category (as Admin)."""
    global SCARCE_TICKET_ID
    if SCARCE_TICKET_ID:
        return

    client.post("/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    venues = client.get("/api/venues").json()
    if not venues:
        return

    future = (datetime.now(timezone.utc) + timedelta(days=30)).isoformat()
    resp = client.post("/api/manage/events", json={
        "title": "Concurrency Test Event",
        "category": "Load",
        "eventDescription": f"{SCARCE_TICKETS} tickets only",
        "startDate": future,
        "duration": 2,
        "venueId": venues[0]["venueId"],
    })
    if resp.status_code != 201:
        return
    event_id = resp.json()["eventId"]

    resp = client.post(f"/api/manage/events/{event_id}/tickets", json={
        "tCategory": "Scarce",
        "price": 100,
        "availability": SCARCE_TICKETS,
    })
    if resp.status_code == 201:
        SCARCE_TICKET_ID = resp.json()["ticketId"]
        print(f"\n✓ Created ticket {SCARCE_TICKET_ID} with {SCARCE_TICKETS} units\n")
    client.post("/api/logout")


class ConcurrencyUser(_CustomerMixin, HttpUser):
    """
    TEST 1: Concurrency - 100 users -> 10 tickets

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM bookings WHERE ticket_id = X;
    Should equal 10, and tickets.availability should be 0.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        _ensure_scarce_ticket(self.client)
        self.ready = self.login_as_new_customer()

    @tag("concurrency")
    @task
    def book_scarce_ticket(self):
        """All users fight for the same units."""
        if not SCARCE_TICKET_ID or not self.ready:
            return

        with self.client.post("/api/bookings",
            json={"ticketId": SCARCE_TICKET_ID},
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: sold out
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class BrowsingUser(HttpUser):
    """
    TEST 2: Catalogue reads

    Run: locust -f locustfile.py --tags browse -u 100 -r 20 --run-time 60s
    """
    wait_time = between(0.1, 0.5)

    @tag("browse")
    @task(10)
    def list_events(self):
        page = random.randint(1, 5)
        resp = self.client.get(f"/api/events?page={page}&limit=12", name="/api/events")
        if resp.status_code == 200:
            for event in resp.json():
                if event["eventId"] not in EVENT_IDS:
                    EVENT_IDS.append(event["eventId"])

    @tag("browse")
    @task(3)
    def get_event_detail(self):
        if EVENT_IDS:
            self.client.get(f"/api/events/{random.choice(EVENT_IDS)}", name="/api/events/{id}")

    @tag("browse")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(_CustomerMixin, HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.login_as_new_customer()

    def _expect(self, resp, *codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_ticket(self):
        with self.client.post("/api/bookings", json={"ticketId": 999999}, catch_response=True) as resp:
            self._expect(resp, 404)

    @tag("edge")
    @task
    def negative_ticket_id(self):
        with self.client.post("/api/bookings", json={"ticketId": -5}, catch_response=True) as resp:
            self._expect(resp, 400)

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/bookings",
            data="not json at all",
            headers={"Content-Type": "application/json"},
            catch_response=True
        ) as resp:
            self._expect(resp, 400)

    @tag("edge")
    @task
    def bad_rating(self):
        with self.client.post("/api/feedback", json={"eventId": 1, "rating": 9}, catch_response=True) as resp:
            self._expect(resp, 400)

    @tag("edge")
    @task
    def customer_on_management(self):
        with self.client.post("/api/manage/events", json={}, catch_response=True) as resp:
            self._expect(resp, 403)
