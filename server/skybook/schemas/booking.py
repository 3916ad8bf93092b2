"""Booking-related Pydantic schemas."""

from datetime import date, datetime

from pydantic import Field

from ..models.booking import BookingStatus
from ..models.flight import CabinClass
from .common import ApiModel, Money


class PassengerInput(ApiModel):
    """Passenger details supplied when booking."""

    first_name: str = Field(..., min_length=1, max_length=128, description="Given name")
    last_name: str = Field(..., min_length=1, max_length=128, description="Family name")
    date_of_birth: date = Field(..., description="Date of birth (ISO 8601)")
    nationality: str = Field(..., min_length=1, max_length=64, description="Nationality")
    passport_number: str | None = Field(None, max_length=32, description="Passport number")
    aadhaar_number: str | None = Field(None, max_length=32, description="National id number")
    age: int | None = Field(None, ge=0, le=120, description="Age in years")
    seat_number: str | None = Field(None, max_length=8, description="Seat assignment")
    special_requests: str | None = Field(None, max_length=1000, description="Passenger-level requests")


class Passenger(PassengerInput):
    """Passenger response schema."""

    id: str = Field(..., description="Unique passenger ID")


class CreateBookingRequest(ApiModel):
    """Request schema for creating a booking."""

    flight_id: str = Field(..., description="Outbound flight")
    passengers: list[PassengerInput] = Field(..., min_length=1, max_length=9, description="Travelling passengers")
    cabin_class: CabinClass = Field(..., description="Cabin class for every passenger")
    return_flight_id: str | None = Field(None, description="Optional return flight")
    special_requests: str | None = Field(None, max_length=2000, description="Booking-level requests")


class UpdateBookingRequest(ApiModel):
    """Request schema for patching a booking."""

    status: BookingStatus | None = Field(None, description="New lifecycle status")
    special_requests: str | None = Field(None, max_length=2000, description="Replacement special requests")


class Booking(ApiModel):
    """Booking response schema."""

    id: str = Field(..., description="Unique booking ID")
    user_id: str = Field(..., description="Owning user")
    flight_id: str = Field(..., description="Outbound flight")
    return_flight_id: str | None = Field(None, description="Return flight")
    passengers: list[Passenger] = Field(..., description="Passengers on the booking")
    cabin_class: CabinClass = Field(..., description="Cabin class")
    total_price: Money = Field(..., description="Unit price times passenger count")
    status: BookingStatus = Field(..., description="Lifecycle status")
    booking_reference: str = Field(..., min_length=8, max_length=8, description="Human-facing reference code")
    special_requests: str | None = Field(None, description="Booking-level requests")
    created_at: datetime = Field(..., description="Creation time (UTC)")
    updated_at: datetime = Field(..., description="Last update time (UTC)")


class BookingCreated(ApiModel):
    """Response schema for a newly created booking."""

    booking: Booking = Field(..., description="The created booking")
    e_ticket: str = Field(..., description="Issued e-ticket token")
