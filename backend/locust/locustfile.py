"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags payments   # Verify-payment write path
  locust -f locustfile.py --tags passes     # my-passes read path
  locust -f locustfile.py --tags edge       # Test bad input
  locust -f locustfile.py                   # All tests

The payment scenario signs payments locally, so RAZORPAY_KEY_SECRET must match
the server's key secret. Order ids are synthetic; no gateway call is made.
"""

import hashlib
import hmac
import os
import random
import uuid
from locust import HttpUser, task, between, tag

KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET", "")
PASSWORD = "loadtest123"


def random_email():
    return f"load_{uuid.uuid4().hex[:12]}@example.com"


def random_phone():
    return "9" + "".join(random.choices("0123456789", k=9))


def sign(order_id, payment_id):
    return hmac.new(
        KEY_SECRET.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256
    ).hexdigest()


def random_tickets():
    tickets = [{"type": "STAG", "quantity": random.randint(1, 4), "price": 500}]
    if random.random() < 0.5:
        tickets.append({"type": "COUPLE", "quantity": 1, "price": 900})
    return tickets


class AuthenticatedUser(HttpUser):
    abstract = True

    def on_start(self):
        self.email = random_email()
        self.phone = random_phone()
        resp = self.client.post("/api/register", json={
            "name": "Load Tester",
            "email": self.email,
            "phone": self.phone,
            "password": PASSWORD,
        })
        if resp.status_code == 201:
            data = resp.json()
            self.user_id = data["user"]["id"]
            self.headers = {"Authorization": f"Bearer {data['token']}"}
        else:
            self.user_id = None
            self.headers = {}


class PaymentUser(AuthenticatedUser):
    """
    TEST 1: Verified payments - every valid signature must yield its own booking

    Run: locust -f locustfile.py --tags payments -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*), COUNT(DISTINCT booking_id), COUNT(DISTINCT payment_id) FROM bookings;
    All three should be equal.
    """
    wait_time = between(0, 0.2)

    @tag("payments")
    @task
    def verify_payment(self):
        if not self.user_id or not KEY_SECRET:
            return

        order_id = f"order_{uuid.uuid4().hex[:14]}"
        payment_id = f"pay_{uuid.uuid4().hex[:14]}"
        tickets = random_tickets()
        with self.client.post("/api/verify-payment",
            json={
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": sign(order_id, payment_id),
                "formData": {
                    "tickets": tickets,
                    "totalAmount": sum(t["price"] * t["quantity"] for t in tickets),
                    "name": "Load Tester",
                    "email": self.email,
                    "phone": self.phone,
                    "userId": self.user_id,
                },
            },
            catch_response=True
        ) as resp:
            if resp.status_code == 200 and resp.json()["booking"]["paymentId"] == payment_id:
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class PassesUser(AuthenticatedUser):
    """
    TEST 2: Read path - pass expansion for the authenticated user

    Run: locust -f locustfile.py --tags passes -u 100 -r 20 --run-time 60s
    """
    wait_time = between(0.1, 0.5)

    @tag("passes", "read")
    @task(10)
    def my_passes(self):
        if self.headers:
            self.client.get("/api/bookings/my-passes", headers=self.headers)

    @tag("passes", "read")
    @task(3)
    def my_bookings_by_email(self):
        if self.headers:
            self.client.get(f"/api/bookings/user/{self.email}",
                headers=self.headers,
                name="/api/bookings/user/{email}")

    @tag("passes")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(AuthenticatedUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def forged_signature(self):
        with self.client.post("/api/verify-payment",
            json={
                "razorpay_order_id": "order_forged",
                "razorpay_payment_id": f"pay_{uuid.uuid4().hex[:14]}",
                "razorpay_signature": "0" * 64,
                "formData": {
                    "tickets": [{"type": "STAG", "quantity": 1, "price": 500}],
                    "totalAmount": 500,
                    "name": "Forger",
                    "email": self.email,
                    "phone": self.phone,
                    "userId": self.user_id,
                },
            },
            catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def unknown_ticket_type(self):
        with self.client.post("/api/verify-payment",
            json={
                "razorpay_order_id": "order_x",
                "razorpay_payment_id": "pay_x",
                "razorpay_signature": "x",
                "formData": {
                    "tickets": [{"type": "VIP", "quantity": 1, "price": 500}],
                    "totalAmount": 500,
                    "name": "Nobody",
                    "email": self.email,
                    "phone": self.phone,
                    "userId": self.user_id,
                },
            },
            catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def negative_order_amount(self):
        with self.client.post("/api/create-order",
            json={"amount": -5},
            catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/verify-payment",
            data="not json at all",
            catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.get("/api/bookings/my-passes", catch_response=True) as resp:
            self._expect(resp, [401])

    @tag("edge")
    @task
    def wrong_password(self):
        with self.client.post("/api/login",
            json={"email": self.email, "password": "not-the-password"},
            catch_response=True
        ) as resp:
            self._expect(resp, [401])
