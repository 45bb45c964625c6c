"""
Order creation and payment verification.

PAYMENT FLOW
============

1. create_order: the client asks for a gateway order. The amount arrives in
   major units and is sent to Razorpay in minor units (x100).
2. The client completes payment with the gateway directly.
3. verify_and_book: the client submits the gateway's order id, payment id and
   signature together with the booking form. The Razorpay SDK recomputes
   HMAC-SHA256("<order_id>|<payment_id>", key_secret) and compares it in
   constant time. Only a matching signature leads to a booking insert; a mismatch
   returns InvalidSignature without touching storage.

A payment id can back at most one booking. Replays are rejected with a
Conflict before the insert, and the unique constraint on bookings.payment_id
catches concurrent replays at flush time. Any other integrity failure at
flush (such as a booking id collision) propagates as a database error.
"""

import time
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventpass.models.booking import Booking, BookingStatus
from eventpass.models.user import User
from eventpass.schemas.payment import OrderCreate, OrderResponse, PaymentVerification
from eventpass.infrastructure.razorpay_client import RazorpayGateway
from eventpass.services.booking_service import generate_booking_id
from eventpass.core.exceptions import Conflict, GatewayError, InvalidSignature, ValidationError
from eventpass.core.metrics import record_booking_attempt, record_gateway_order, verify_latency
from eventpass.core.logging import get_logger

logger = get_logger(__name__)


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount (e.g. rupees) to integer minor units (paise)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


async def create_order(gateway: RazorpayGateway, order_data: OrderCreate) -> OrderResponse:
    amount = to_minor_units(order_data.amount)
    receipt = f"receipt_{time.time_ns() // 1_000_000}"

    try:
        order = await gateway.create_order(amount, receipt)
    except GatewayError:
        record_gateway_order(created=False)
        raise

    record_gateway_order(created=True)
    logger.info("order_created", order_id=order.get("id"), amount=amount, receipt=receipt)
    return OrderResponse(
        id=order["id"],
        amount=order.get("amount", amount),
        currency=order.get("currency", gateway.currency),
    )


async def _payment_recorded(db: AsyncSession, payment_id: str) -> bool:
    result = await db.execute(select(Booking.id).where(Booking.payment_id == payment_id))
    return result.scalar_one_or_none() is not None


async def verify_and_book(
    db: AsyncSession,
    gateway: RazorpayGateway,
    verification: PaymentVerification,
) -> Booking:
    """
    Verify the payment signature and persist a CONFIRMED booking.
    Raises InvalidSignature without writing anything if the signature does not match.
    """
    with verify_latency.time():
        form = verification.form_data
        if form is None or form.user_id is None:
            record_booking_attempt("rejected")
            raise ValidationError("User ID is required")

        if not gateway.verify_signature(
            verification.razorpay_order_id,
            verification.razorpay_payment_id,
            verification.razorpay_signature,
        ):
            logger.warning(
                "payment_signature_invalid",
                order_id=verification.razorpay_order_id,
                payment_id=verification.razorpay_payment_id,
            )
            record_booking_attempt("invalid_signature")
            raise InvalidSignature()

        user = await db.get(User, form.user_id)
        if user is None:
            record_booking_attempt("rejected")
            raise ValidationError(f"User {form.user_id} does not exist")

        if await _payment_recorded(db, verification.razorpay_payment_id):
            logger.warning("payment_replayed", payment_id=verification.razorpay_payment_id)
            record_booking_attempt("duplicate")
            raise Conflict("Payment already processed", code="PAYMENT_ALREADY_PROCESSED")

        booking_id = generate_booking_id()
        booking = Booking(
            booking_id=booking_id,
            user_id=form.user_id,
            payment_id=verification.razorpay_payment_id,
            tickets=[ticket.model_dump(mode="json") for ticket in form.tickets],
            total_amount=form.total_amount,
            name=form.name,
            email=form.email,
            phone=form.phone,
            status=BookingStatus.CONFIRMED.value,
        )
        db.add(booking)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            if await _payment_recorded(db, verification.razorpay_payment_id):
                # Concurrent replay won the insert
                logger.warning("payment_replayed", payment_id=verification.razorpay_payment_id)
                record_booking_attempt("duplicate")
                raise Conflict("Payment already processed", code="PAYMENT_ALREADY_PROCESSED")
            logger.error(
                "booking_insert_conflict",
                booking_id=booking_id,
                payment_id=verification.razorpay_payment_id,
            )
            record_booking_attempt("rejected")
            raise
        await db.refresh(booking)

    logger.info(
        "booking_created",
        booking_id=booking.booking_id,
        user_id=booking.user_id,
        payment_id=booking.payment_id,
        tickets=len(booking.tickets),
        total_amount=booking.total_amount,
    )
    record_booking_attempt("success")
    return booking
