from eventpass.schemas.user import UserCreate, UserLogin, UserResponse, AuthResponse
from eventpass.schemas.booking import TicketLine, BookingForm, BookingResponse, PassResponse
from eventpass.schemas.payment import (
    OrderCreate,
    OrderResponse,
    PaymentVerification,
    PaymentVerificationResponse,
)

__all__ = [
    "UserCreate", "UserLogin", "UserResponse", "AuthResponse",
    "TicketLine", "BookingForm", "BookingResponse", "PassResponse",
    "OrderCreate", "OrderResponse", "PaymentVerification", "PaymentVerificationResponse",
]
