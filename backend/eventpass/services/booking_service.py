"""
Booking query service and pass expansion.

BOOKING IDENTIFIERS
===================

Booking ids are "BN" followed by a ULID-style string: a 48-bit millisecond
timestamp and 80 random bits, Crockford base32 encoded (26 chars). Ids sort
by creation time, and the random part makes collisions between concurrent
requests negligible. The column carries a unique constraint as well.

PASSES
======

A pass is a per-ticket-line view of a booking. A booking with N ticket lines
expands to exactly N passes, each with totalAmount = price * quantity.
Ordering is booking retrieval order, then ticket array order.
"""

import secrets
import time
from typing import Iterable, Iterator, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventpass.models.booking import Booking
from eventpass.schemas.booking import PassResponse
from eventpass.core.logging import get_logger

logger = get_logger(__name__)

BOOKING_ID_PREFIX = "BN"
_CROCKFORD_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_TIMESTAMP_BITS = 48
_RANDOM_BITS = 80


def generate_booking_id(timestamp_ms: Optional[int] = None) -> str:
    """Return a new time-ordered booking id such as "BN01J9ZQ...". """
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    value = ((timestamp_ms & ((1 << _TIMESTAMP_BITS) - 1)) << _RANDOM_BITS) | secrets.randbits(_RANDOM_BITS)

    chars = []
    for _ in range(26):
        chars.append(_CROCKFORD_ALPHABET[value & 0x1F])
        value >>= 5
    return BOOKING_ID_PREFIX + "".join(reversed(chars))


async def get_bookings_by_email(db: AsyncSession, email: str) -> list[Booking]:
    result = await db.execute(
        select(Booking)
        .where(Booking.email == email)
        .order_by(Booking.created_at.asc(), Booking.id.asc())
    )
    return list(result.scalars().all())


async def get_all_bookings(db: AsyncSession) -> list[Booking]:
    result = await db.execute(
        select(Booking).order_by(Booking.created_at.asc(), Booking.id.asc())
    )
    return list(result.scalars().all())


async def get_user_bookings(db: AsyncSession, user_id: int) -> list[Booking]:
    """Get all bookings owned by a user, oldest first."""
    result = await db.execute(
        select(Booking)
        .where(Booking.user_id == user_id)
        .order_by(Booking.created_at.asc(), Booking.id.asc())
    )
    return list(result.scalars().all())


def iter_passes(bookings: Iterable[Booking]) -> Iterator[PassResponse]:
    """Lazily expand bookings into one pass per embedded ticket line."""
    for booking in bookings:
        for ticket in booking.tickets:
            yield PassResponse(
                id=str(booking.id),
                booking_id=booking.booking_id,
                ticket_type=ticket["type"],
                quantity=ticket["quantity"],
                total_amount=ticket["price"] * ticket["quantity"],
                name=booking.name,
                email=booking.email,
                phone=booking.phone,
                status=booking.status,
                created_at=booking.created_at,
            )


async def get_user_passes(db: AsyncSession, user_id: int) -> list[PassResponse]:
    bookings = await get_user_bookings(db, user_id)
    passes = list(iter_passes(bookings))
    logger.info(
        "passes_expanded",
        user_id=user_id,
        bookings=len(bookings),
        passes=len(passes),
    )
    return passes
