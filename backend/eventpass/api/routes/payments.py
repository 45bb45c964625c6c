"""
Payment endpoints: gateway order creation and signature verification.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eventpass.db.session import get_db
from eventpass.infrastructure.razorpay_client import RazorpayGateway, get_payment_gateway
from eventpass.schemas.booking import BookingResponse
from eventpass.schemas.payment import (
    OrderCreate,
    OrderResponse,
    PaymentVerification,
    PaymentVerificationResponse,
)
from eventpass.services.payment_service import create_order, verify_and_book

router = APIRouter(tags=["Payments"])


@router.post("/create-order", response_model=OrderResponse)
async def create_order_endpoint(
    order_data: OrderCreate,
    gateway: RazorpayGateway = Depends(get_payment_gateway),
):
    """Create a Razorpay order for the given amount (major currency units)."""
    return await create_order(gateway, order_data)


@router.post("/verify-payment", response_model=PaymentVerificationResponse)
async def verify_payment_endpoint(
    verification: PaymentVerification,
    db: AsyncSession = Depends(get_db),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
):
    """
    Verify the Razorpay payment signature and record the booking.

    The booking is only written when the HMAC signature matches.
    """
    booking = await verify_and_book(db, gateway, verification)
    return PaymentVerificationResponse(
        success=True,
        booking=BookingResponse.model_validate(booking),
    )
