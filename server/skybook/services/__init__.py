"""Service layer package."""

from .airport_service import AirportService
from .auth_service import AuthService
from .booking_service import BookingService
from .email_service import EmailService
from .flight_service import FlightService
from .identity_provider import GoTrueIdentityProvider, IdentityProvider
from .notification_relay import NotificationRelay
from .user_service import UserService

__all__ = [
    "AirportService",
    "AuthService",
    "BookingService",
    "EmailService",
    "FlightService",
    "GoTrueIdentityProvider",
    "IdentityProvider",
    "NotificationRelay",
    "UserService",
]
