"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags contention   # Many students, few seats, same window
  locust -f locustfile.py --tags occupancy    # Cached seating reads
  locust -f locustfile.py --tags edge         # Bad input handling
  locust -f locustfile.py                     # All tests

Seats and students must already exist (seat/student management owns them).
Point the run at them with LIBRARY_ID, ROOM_ID, SEAT_IDS and STUDENT_IDS.
"""

import os
import random
from datetime import date, datetime, timedelta

from locust import HttpUser, task, between, tag, events

LIBRARY_ID = os.environ.get("LIBRARY_ID", "library1")
ROOM_ID = os.environ.get("ROOM_ID", "R1")
SEAT_IDS = os.environ.get("SEAT_IDS", "S1,S2,S3,S4,S5").split(",")
STUDENT_IDS = os.environ.get("STUDENT_IDS", ",".join(f"ST{i}" for i in range(1, 101))).split(",")

BOOKINGS_URL = f"/api/v1/libraries/{LIBRARY_ID}/bookings/"
OCCUPANCY_URL = f"/api/v1/libraries/{LIBRARY_ID}/rooms/{ROOM_ID}/occupancy"

# Every contention booking targets the same window so only one student per seat can win
CONTENTION_START = datetime.combine(date.today() + timedelta(days=30), datetime.min.time()).replace(hour=9)


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"Library {LIBRARY_ID}, room {ROOM_ID}: {len(SEAT_IDS)} seats, {len(STUDENT_IDS)} students")
    print(f"Contention window starts {CONTENTION_START.isoformat()}")
    print("=" * 60)


class ContentionUser(HttpUser):
    """
    TEST 1: Contention - many students -> few seats, one window

    Run: locust -f locustfile.py --tags contention -u 100 -r 50 --run-time 30s

    After test, verify no seat is double booked:
      SELECT seat_id, COUNT(*) FROM seat_bookings
      WHERE status = 'active' AND start_time = '<window>' GROUP BY seat_id;
    Every count should be 1. 409s are expected, 503s mean retries ran out.
    """
    wait_time = between(0, 0.1)

    @tag("contention")
    @task
    def book_contended_seat(self):
        payload = {
            "room_id": ROOM_ID,
            "seat_id": random.choice(SEAT_IDS),
            "student_id": random.choice(STUDENT_IDS),
            "start_time": CONTENTION_START.isoformat(),
            "duration": {"type": "hourly", "hours": 4},
        }
        with self.client.post(BOOKINGS_URL, json=payload, name="POST bookings [contended]",
                              catch_response=True) as resp:
            if resp.status_code in (201, 409):
                resp.success()
            elif resp.status_code == 503:
                resp.failure("Retries exhausted")
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class OccupancyUser(HttpUser):
    """
    TEST 2: Occupancy reads - cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags occupancy -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false on the API, run again
    """
    wait_time = between(0.1, 0.5)

    @tag("occupancy")
    @task(10)
    def room_occupancy(self):
        day = date.today() + timedelta(days=random.randint(0, 45))
        self.client.get(OCCUPANCY_URL, params={"day": day.isoformat()}, name="GET occupancy [cached]")

    @tag("occupancy")
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

    def _expect(self, payload, allowed, name):
        with self.client.post(BOOKINGS_URL, json=payload, name=name, catch_response=True) as resp:
            if resp.status_code in allowed:
                resp.success()
            else:
                resp.failure(f"Expected {allowed}, got {resp.status_code}")

    def _payload(self, **overrides):
        payload = {
            "room_id": ROOM_ID,
            "seat_id": random.choice(SEAT_IDS),
            "student_id": random.choice(STUDENT_IDS),
            "start_time": CONTENTION_START.isoformat(),
            "duration": {"type": "hourly", "hours": 4},
        }
        payload.update(overrides)
        return payload

    @tag("edge")
    @task
    def unknown_seat(self):
        self._expect(self._payload(seat_id="no-such-seat"), (404,), "edge: unknown seat")

    @tag("edge")
    @task
    def unsupported_hours(self):
        self._expect(self._payload(duration={"type": "hourly", "hours": 5}), (422,), "edge: 5 hours")

    @tag("edge")
    @task
    def daily_after_close(self):
        late = CONTENTION_START.replace(hour=22).isoformat()
        self._expect(self._payload(start_time=late, duration={"type": "daily"}), (422,), "edge: daily after close")

    @tag("edge")
    @task
    def blank_student(self):
        self._expect(self._payload(student_id=""), (422,), "edge: blank student")

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(BOOKINGS_URL, data="not json at all", name="edge: malformed",
                              catch_response=True) as resp:
            if resp.status_code in (400, 422):
                resp.success()
            else:
                resp.failure(f"Expected 400/422, got {resp.status_code}")
