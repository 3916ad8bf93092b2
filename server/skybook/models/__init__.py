"""Models module exporting all database models."""

from .airport import Airport
from .booking import BOOKING_STATUS_TRANSITIONS, Booking, BookingStatus, Passenger, can_transition
from .flight import CabinClass, Flight, FlightPrice, FlightSeat, FlightStatus
from .user import User

__all__ = [
    # Reference data
    "Airport",

    # Flight entities
    "Flight",
    "FlightPrice",
    "FlightSeat",
    "FlightStatus",
    "CabinClass",

    # Booking entities
    "Booking",
    "BookingStatus",
    "Passenger",
    "BOOKING_STATUS_TRANSITIONS",
    "can_transition",

    # Profile entity
    "User",
]
