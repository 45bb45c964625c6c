"""
Pydantic schemas for gateway order creation and payment verification.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from eventpass.schemas.booking import BookingForm, BookingResponse


class OrderCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class OrderResponse(BaseModel):
    id: str
    amount: int
    currency: str


class PaymentVerification(BaseModel):
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)
    form_data: BookingForm | None = Field(None, alias="formData")


class PaymentVerificationResponse(BaseModel):
    success: bool
    booking: BookingResponse
