import random
import uuid
from datetime import date, timedelta

from locust import HttpUser, between, task


class BookingUser(HttpUser):
    # Wait between 1 and 3 seconds between tasks
    wait_time = between(1, 3)

    def on_start(self):
        """Each simulated user books against a small pool of properties to force conflicts."""
        self.property_ids = list(range(1, 6))
        self.guest_id = random.randint(1, 10_000)

    @task(3)
    def create_reservation(self):
        check_in = date.today() + timedelta(days=random.randint(0, 80))
        payload = {
            "property_id": random.choice(self.property_ids),
            "guest_id": self.guest_id,
            "check_in": check_in.isoformat(),
            "check_out": (check_in + timedelta(days=random.randint(1, 7))).isoformat(),
        }
        headers = {"Idempotency-Key": str(uuid.uuid4())}
        with self.client.post(
            "/api/v1/reservations",
            json=payload,
            headers=headers,
            name="/api/v1/reservations",
            catch_response=True,
        ) as response:
            # 409 is the expected answer when the interval is taken
            if response.status_code in (201, 409):
                response.success()

    @task(1)
    def available_dates(self):
        self.client.get(
            "/api/v1/reservations/available-dates",
            params={"property_id": random.choice(self.property_ids)},
            name="/api/v1/reservations/available-dates",
        )
