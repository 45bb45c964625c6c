"""
Booking query endpoints.

All of them require a bearer token:
- /my-passes: the caller's own passes
- /user/{email}: the caller's own email, or any email for admins
- / : every booking, admins only
"""

from fastapi import APIRouter, Depends
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from eventpass.db.session import get_db
from eventpass.models.user import User
from eventpass.schemas.booking import BookingResponse, PassResponse
from eventpass.services.booking_service import (
    get_all_bookings,
    get_bookings_by_email,
    get_user_passes,
)
from eventpass.core.exceptions import Forbidden
from eventpass.core.metrics import passes_served
from eventpass.core.security import get_current_user, get_current_user_id, require_admin
from eventpass.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.get("/my-passes", response_model=list[PassResponse])
async def list_my_passes(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Get the authenticated user's bookings flattened into one pass per ticket line."""
    passes = await get_user_passes(db, user_id)
    passes_served.inc(len(passes))
    return passes


@router.get("/user/{email}", response_model=list[BookingResponse])
async def list_bookings_by_email(
    email: EmailStr,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get bookings made with an email address.

    The path email is normalized like stored emails (lowercased domain) before matching.
    """
    if not user.is_admin and user.email != email:
        logger.warning("bookings_by_email_denied", user_id=user.id)
        raise Forbidden()
    return await get_bookings_by_email(db, email)


@router.get("", response_model=list[BookingResponse])
async def list_all_bookings(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Get every booking. Admin only."""
    return await get_all_bookings(db)
