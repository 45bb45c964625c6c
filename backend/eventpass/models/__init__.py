from eventpass.models.user import User
from eventpass.models.booking import Booking, BookingStatus, TicketType

__all__ = ["User", "Booking", "BookingStatus", "TicketType"]
