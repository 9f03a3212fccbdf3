"""
Locust Load Test Suite

Needs a seeded catalog (python seed_data.py) so there are flights to book.

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test overbooking of one flight
  locust -f locustfile.py --tags throughput   # Test search cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
import string
from locust import HttpUser, task, between, tag

# Shared state
FLIGHT_IDS = []
CONCURRENCY_FLIGHT_ID = None

ROUTES = [("BAH", "DXB"), ("BAH", "LHR"), ("DOH", "BAH"), ("BAH", "BKK"), ("CAI", "BAH")]


def random_email():
    return f"load_{random.randint(10000, 99999)}_{random.randint(0, 999)}@example.com"


def random_username():
    return "u_" + "".join(random.choices(string.ascii_lowercase, k=8))


def random_seat():
    return f"{random.randint(1, 40)}{random.choice('ABCDEF')}"


def sign_up(client) -> dict:
    """Register a fresh Falcon Flyer and return auth headers ({} on failure)."""
    email = random_email()
    client.post("/auth/register", json={
        "username": random_username(),
        "first_name": "Load",
        "last_name": "Tester",
        "email": email,
        "password": "test123",
    })
    resp = client.post("/auth/login", json={"email": email, "password": "test123"})
    if resp.status_code != 200:
        return {}
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def booking_payload(flight_id, seat_class="economy", price=0.0):
    return {
        "flight_id": flight_id,
        "passenger_name": "Load Tester",
        "passenger_email": "load@example.com",
        "passport_number": "LT000001",
        "seat_class": seat_class,
        "seat_number": random_seat(),
        "total_price": price,
    }


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - many users -> business cabin of one flight

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM bookings WHERE flight_id = X AND seat_class = 'business'
        AND booking_status <> 'cancelled';
    Should be <= total_business_seats, and available_business_seats >= 0
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = sign_up(self.client)

        if not CONCURRENCY_FLIGHT_ID:
            resp = self.client.get("/api/flights/search/BAH/DOH")
            if resp.status_code == 200 and resp.json():
                globals()["CONCURRENCY_FLIGHT_ID"] = resp.json()[0]["id"]
                print(f"\n✓ Targeting flight {CONCURRENCY_FLIGHT_ID}\n")

    @tag("concurrency")
    @task
    def book_limited_seats(self):
        """All users fight for the same business seats."""
        if not CONCURRENCY_FLIGHT_ID or not self.headers:
            return

        with self.client.post("/api/bookings",
            json=booking_payload(CONCURRENCY_FLIGHT_ID, seat_class="business"),
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 400 and resp.json().get("code") == "seat_unavailable":
                resp.success()  # Expected: sold out
            elif resp.status_code == 409:
                resp.success()  # Expected: retries exhausted under contention
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Search cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again

    Compare avg response time, requests/sec, P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def search_flights_cached(self):
        departure, arrival = random.choice(ROUTES)
        resp = self.client.get(f"/api/flights/search/{departure}/{arrival}",
            name="/api/flights/search/{dep}/{arr} [cached]")
        if resp.status_code == 200:
            for flight in resp.json():
                if flight["id"] not in FLIGHT_IDS:
                    FLIGHT_IDS.append(flight["id"])

    @tag("throughput", "read")
    @task(3)
    def get_flight_detail(self):
        """Uncached: real-time seat counts."""
        if FLIGHT_IDS:
            self.client.get(f"/api/flights/{random.choice(FLIGHT_IDS)}",
                name="/api/flights/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = sign_up(self.client)

    def expect(self, resp, *codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def invalid_flight_id(self):
        with self.client.post("/api/bookings", json=booking_payload(999999),
            headers=self.headers, catch_response=True) as resp:
            self.expect(resp, 404)

    @tag("edge")
    @task
    def unknown_seat_class(self):
        with self.client.post("/api/bookings", json=booking_payload(1, seat_class="first"),
            headers=self.headers, catch_response=True) as resp:
            self.expect(resp, 400)

    @tag("edge")
    @task
    def negative_price(self):
        with self.client.post("/api/bookings", json=booking_payload(1, price=-10),
            headers=self.headers, catch_response=True) as resp:
            self.expect(resp, 400)

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/bookings", data="not json at all",
            headers=self.headers, catch_response=True) as resp:
            self.expect(resp, 400)

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post("/api/bookings", json=booking_payload(1),
            catch_response=True) as resp:
            self.expect(resp, 401)

    @tag("edge")
    @task
    def checkin_unknown_booking(self):
        with self.client.post("/api/bookings/999999/checkin",
            headers=self.headers, catch_response=True) as resp:
            self.expect(resp, 404)


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Mostly searching, some bookings, occasional check-in / cancel / reschedule.
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = sign_up(self.client)
        self.booking_ids = []

    @task(50)
    def search(self):
        departure, arrival = random.choice(ROUTES)
        resp = self.client.get(f"/api/flights/search/{departure}/{arrival}",
            name="/api/flights/search/{dep}/{arr}")
        if resp.status_code == 200:
            for flight in resp.json():
                if flight["id"] not in FLIGHT_IDS:
                    FLIGHT_IDS.append(flight["id"])

    @task(10)
    def book(self):
        if FLIGHT_IDS and self.headers:
            resp = self.client.post("/api/bookings",
                json=booking_payload(random.choice(FLIGHT_IDS)),
                headers=self.headers)
            if resp.status_code == 201:
                self.booking_ids.append(resp.json()["id"])

    @task(5)
    def my_trips(self):
        if self.headers:
            self.client.get("/api/bookings", headers=self.headers)
            self.client.get("/api/loyalty/status", headers=self.headers)

    @task(3)
    def check_in(self):
        """400 outside the 24h window is a normal answer."""
        if self.booking_ids:
            with self.client.post(f"/api/bookings/{random.choice(self.booking_ids)}/checkin",
                headers=self.headers, name="/api/bookings/{id}/checkin", catch_response=True) as resp:
                if resp.status_code in (200, 400):
                    resp.success()

    @task(2)
    def cancel(self):
        if self.booking_ids:
            booking_id = self.booking_ids.pop()
            with self.client.delete(f"/api/bookings/{booking_id}",
                headers=self.headers, name="/api/bookings/{id}", catch_response=True) as resp:
                if resp.status_code in (200, 400):
                    resp.success()

    @task(1)
    def reschedule(self):
        if self.booking_ids and len(FLIGHT_IDS) > 1:
            booking_id = self.booking_ids.pop()
            with self.client.post(f"/api/bookings/{booking_id}/reschedule",
                json={"new_flight_id": random.choice(FLIGHT_IDS)},
                headers=self.headers, name="/api/bookings/{id}/reschedule", catch_response=True) as resp:
                if resp.status_code == 200:
                    self.booking_ids.append(resp.json()["new_booking"]["id"])
                    resp.success()
                elif resp.status_code == 400:
                    resp.success()
