"""
Pydantic schemas for bookings, the booking form submitted with a payment,
and the per-ticket pass view.

JSON keys are camelCase and the primary key is exposed as "_id" to match the
ticketing frontend.
"""

import math
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

from eventpass.models.booking import BookingStatus, TicketType


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class TicketLine(CamelModel):
    type: TicketType
    quantity: int = Field(..., gt=0)
    price: float = Field(..., ge=0)


class BookingForm(CamelModel):
    tickets: list[TicketLine] = Field(..., min_length=1)
    total_amount: float = Field(..., ge=0)
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: str = Field(..., min_length=5, max_length=32)
    user_id: int | None = None

    @model_validator(mode="after")
    def check_total_matches_tickets(self) -> "BookingForm":
        expected = sum(t.price * t.quantity for t in self.tickets)
        if not math.isclose(self.total_amount, expected, abs_tol=0.01):
            raise ValueError(
                f"totalAmount {self.total_amount} does not match ticket total {expected}"
            )
        # Stored total is always the ticket sum so pass totals add up to it
        self.total_amount = expected
        return self


class BookingResponse(CamelModel):
    id: int = Field(..., alias="_id")
    booking_id: str
    user_id: int
    payment_id: str
    tickets: list[TicketLine]
    total_amount: float
    name: str
    email: str
    phone: str
    status: BookingStatus
    created_at: datetime


class PassResponse(CamelModel):
    id: str = Field(..., alias="_id")
    booking_id: str
    ticket_type: TicketType
    quantity: int
    total_amount: float
    name: str
    email: str
    phone: str
    status: BookingStatus
    created_at: datetime
