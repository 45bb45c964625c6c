"""
Booking model representing one completed, payment-verified purchase.

Key design decisions:
- Ticket lines are embedded as a JSON array; they have no identity of their own
- booking_id and payment_id are unique so a payment can back at most one booking
- Status defaults to CONFIRMED because rows are only written after the payment
  signature has been verified
"""

import enum

from sqlalchemy import Column, Integer, String, Float, JSON, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from eventpass.db.base import Base, TimestampMixin


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    USED = "USED"


class TicketType(str, enum.Enum):
    STAG = "STAG"
    COUPLE = "COUPLE"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(String(32), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    payment_id = Column(String(64), nullable=False)
    tickets = Column(JSON, nullable=False, default=list)
    total_amount = Column(Float, nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(32), nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value)

    user = relationship("User", back_populates="bookings", lazy="raise")

    __table_args__ = (
        UniqueConstraint("booking_id", name="uq_bookings_booking_id"),
        UniqueConstraint("payment_id", name="uq_bookings_payment_id"),
        CheckConstraint("total_amount >= 0", name="check_booking_total_non_negative"),
        CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'USED')",
            name="check_booking_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, booking_id={self.booking_id}, user={self.user_id}, status={self.status})>"
