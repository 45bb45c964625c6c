"""
Tests for order creation and payment verification.

The booking write must only happen after the HMAC signature matches.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from eventpass.models.booking import Booking
from eventpass.services import payment_service
from tests.conftest import sign


async def count_bookings(db_session) -> int:
    return (await db_session.execute(select(func.count()).select_from(Booking))).scalar()


def verification_body(order_id: str, payment_id: str, form: dict, signature: str | None = None) -> dict:
    return {
        "razorpay_order_id": order_id,
        "razorpay_payment_id": payment_id,
        "razorpay_signature": signature if signature is not None else sign(order_id, payment_id),
        "formData": form,
    }


# ---------------------
# CREATE ORDER
# ---------------------

@pytest.mark.asyncio
async def test_create_order_converts_to_minor_units(client: AsyncClient, razorpay_client):
    """Amount in rupees is sent to the gateway in paise."""
    response = await client.post("/api/create-order", json={"amount": 1900})
    assert response.status_code == 200
    data = response.json()
    assert data == {"id": "order_test1", "amount": 190000, "currency": "INR"}

    options = razorpay_client.order.calls[0]
    assert options["amount"] == 190000
    assert options["currency"] == "INR"
    assert options["payment_capture"] == 1
    assert options["receipt"].startswith("receipt_")


@pytest.mark.asyncio
async def test_create_order_fractional_amount(client: AsyncClient, razorpay_client):
    response = await client.post("/api/create-order", json={"amount": 499.99})
    assert response.status_code == 200
    assert razorpay_client.order.calls[0]["amount"] == 49999


@pytest.mark.asyncio
async def test_create_order_rejects_non_positive_amount(client: AsyncClient, razorpay_client):
    response = await client.post("/api/create-order", json={"amount": 0})
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert razorpay_client.order.calls == []


@pytest.mark.asyncio
async def test_create_order_gateway_failure(client: AsyncClient, razorpay_client):
    """Downstream failures surface as a generic 500 without details."""
    razorpay_client.order.fail = True
    response = await client.post("/api/create-order", json={"amount": 100})
    assert response.status_code == 500
    assert response.json() == {"message": "Error creating order", "code": "GATEWAY_ERROR"}


# ---------------------
# VERIFY PAYMENT
# ---------------------

@pytest.mark.asyncio
async def test_verify_payment_creates_confirmed_booking(client: AsyncClient, booking_form, test_user, db_session):
    response = await client.post(
        "/api/verify-payment",
        json=verification_body("order_abc", "pay_abc", booking_form),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True

    booking = data["booking"]
    assert booking["bookingId"].startswith("BN")
    assert len(booking["bookingId"]) == 28
    assert booking["status"] == "CONFIRMED"
    assert booking["paymentId"] == "pay_abc"
    assert booking["userId"] == test_user.id
    assert booking["totalAmount"] == 1900
    assert [t["type"] for t in booking["tickets"]] == ["STAG", "COUPLE"]
    assert "_id" in booking
    assert await count_bookings(db_session) == 1


@pytest.mark.asyncio
async def test_verify_payment_invalid_signature_writes_nothing(client: AsyncClient, booking_form, db_session):
    response = await client.post(
        "/api/verify-payment",
        json=verification_body("order_abc", "pay_abc", booking_form, signature="0" * 64),
    )
    assert response.status_code == 400
    assert response.json() == {"message": "Invalid payment signature", "code": "INVALID_SIGNATURE"}
    assert await count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_verify_payment_signature_from_wrong_secret(client: AsyncClient, booking_form, db_session):
    signature = sign("order_abc", "pay_abc", secret="not-the-key-secret")
    response = await client.post(
        "/api/verify-payment",
        json=verification_body("order_abc", "pay_abc", booking_form, signature=signature),
    )
    assert response.status_code == 400
    assert await count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_verify_payment_swapped_ids_rejected(client: AsyncClient, booking_form, db_session):
    """The signed message is order|payment; swapping the ids must not verify."""
    signature = sign("pay_abc", "order_abc")
    response = await client.post(
        "/api/verify-payment",
        json=verification_body("order_abc", "pay_abc", booking_form, signature=signature),
    )
    assert response.status_code == 400
    assert await count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_verify_payment_requires_user_id(client: AsyncClient, booking_form, db_session):
    del booking_form["userId"]
    response = await client.post(
        "/api/verify-payment",
        json=verification_body("order_abc", "pay_abc", booking_form),
    )
    assert response.status_code == 400
    assert response.json()["message"] == "User ID is required"
    assert await count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_verify_payment_requires_form_data(client: AsyncClient, db_session):
    body = verification_body("order_abc", "pay_abc", {})
    del body["formData"]
    response = await client.post("/api/verify-payment", json=body)
    assert response.status_code == 400
    assert response.json()["message"] == "User ID is required"


@pytest.mark.asyncio
async def test_verify_payment_unknown_user(client: AsyncClient, booking_form, db_session):
    booking_form["userId"] = 99999
    response = await client.post(
        "/api/verify-payment",
        json=verification_body("order_abc", "pay_abc", booking_form),
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert await count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_verify_payment_total_mismatch(client: AsyncClient, booking_form, db_session):
    booking_form["totalAmount"] = 100
    response = await client.post(
        "/api/verify-payment",
        json=verification_body("order_abc", "pay_abc", booking_form),
    )
    assert response.status_code == 400
    assert await count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_verify_payment_unknown_ticket_type(client: AsyncClient, booking_form, db_session):
    booking_form["tickets"][0]["type"] = "VIP"
    response = await client.post(
        "/api/verify-payment",
        json=verification_body("order_abc", "pay_abc", booking_form),
    )
    assert response.status_code == 400
    assert await count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_verify_payment_replay_rejected(client: AsyncClient, booking_form, db_session):
    """A payment id can back only one booking."""
    body = verification_body("order_abc", "pay_abc", booking_form)
    first = await client.post("/api/verify-payment", json=body)
    assert first.status_code == 200

    second = await client.post("/api/verify-payment", json=body)
    assert second.status_code == 400
    assert second.json()["code"] == "PAYMENT_ALREADY_PROCESSED"
    assert await count_bookings(db_session) == 1


@pytest.mark.asyncio
async def test_distinct_payments_produce_independent_bookings(client: AsyncClient, booking_form, db_session):
    first = await client.post(
        "/api/verify-payment",
        json=verification_body("order_1", "pay_1", booking_form),
    )
    second = await client.post(
        "/api/verify-payment",
        json=verification_body("order_2", "pay_2", booking_form),
    )
    assert first.status_code == second.status_code == 200

    first_booking = first.json()["booking"]
    second_booking = second.json()["booking"]
    assert first_booking["_id"] != second_booking["_id"]
    assert first_booking["bookingId"] != second_booking["bookingId"]

    rows = (await db_session.execute(select(Booking).order_by(Booking.id))).scalars().all()
    assert [row.payment_id for row in rows] == ["pay_1", "pay_2"]
    assert rows[0].booking_id == first_booking["bookingId"]


@pytest.mark.asyncio
async def test_verify_payment_stores_ticket_sum_as_total(client: AsyncClient, booking_form, auth_headers, db_session):
    """A total within rounding tolerance is accepted but the ticket sum is what gets stored."""
    booking_form["totalAmount"] = 1900.009
    response = await client.post(
        "/api/verify-payment",
        json=verification_body("order_abc", "pay_abc", booking_form),
    )
    assert response.status_code == 200
    assert response.json()["booking"]["totalAmount"] == 1900

    stored = (await db_session.execute(select(Booking))).scalar_one()
    passes = (await client.get("/api/bookings/my-passes", headers=auth_headers)).json()
    assert sum(p["totalAmount"] for p in passes) == stored.total_amount == 1900


@pytest.mark.asyncio
async def test_verify_payment_concurrent_replay_reported_as_duplicate(
    client: AsyncClient, booking_form, test_user, make_booking, db_session, monkeypatch
):
    """A replay that slips past the pre-check is caught by the payment id constraint."""
    seeded = await make_booking(test_user, booking_form["tickets"])
    payment_id = seeded.payment_id
    real_check = payment_service._payment_recorded
    calls = []

    async def racing_check(db, payment_id):
        calls.append(payment_id)
        if len(calls) == 1:
            return False
        return await real_check(db, payment_id)

    monkeypatch.setattr(payment_service, "_payment_recorded", racing_check)
    response = await client.post(
        "/api/verify-payment",
        json=verification_body("order_abc", payment_id, booking_form),
    )
    assert response.status_code == 400
    assert response.json()["code"] == "PAYMENT_ALREADY_PROCESSED"
    assert calls == [payment_id, payment_id]
    assert await count_bookings(db_session) == 1


@pytest.mark.asyncio
async def test_verify_payment_booking_id_collision_is_not_a_replay(
    client: AsyncClient, booking_form, test_user, make_booking, db_session, monkeypatch
):
    seeded = await make_booking(test_user, booking_form["tickets"])
    taken_id = seeded.booking_id
    monkeypatch.setattr(payment_service, "generate_booking_id", lambda: taken_id)

    response = await client.post(
        "/api/verify-payment",
        json=verification_body("order_abc", "pay_fresh", booking_form),
    )
    assert response.status_code == 500
    assert response.json() == {"message": "Database error", "code": "DATABASE_ERROR"}
    assert await count_bookings(db_session) == 1
