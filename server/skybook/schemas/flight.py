"""Flight- and airport-related Pydantic schemas."""

from datetime import date, datetime

from pydantic import Field, field_validator

from ..models.flight import CabinClass, FlightStatus
from .common import ApiModel, Money


class FlightSearchRequest(ApiModel):
    """Request schema for searching flights."""

    origin: str = Field(..., min_length=3, max_length=3, description="Origin IATA code")
    destination: str = Field(..., min_length=3, max_length=3, description="Destination IATA code")
    departure_date: date = Field(..., description="Departure calendar day (ISO 8601)")
    return_date: date | None = Field(None, description="Return calendar day, informational only")
    cabin_class: CabinClass = Field(CabinClass.ECONOMY, description="Requested cabin class")
    passengers: int = Field(1, ge=1, le=9, description="Number of travelling passengers")

    @field_validator("origin", "destination")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        """Upper-case IATA codes."""
        return v.upper()


class CabinFare(ApiModel):
    """Price and availability of one cabin on a flight."""

    cabin_class: CabinClass = Field(..., description="Cabin class")
    price: Money | None = Field(None, description="Unit price, absent if not on sale")
    available_seats: int = Field(0, ge=0, description="Seats left in the cabin")
    total_seats: int = Field(0, ge=0, description="Seats in the cabin")


class Flight(ApiModel):
    """Flight summary for a single cabin, as returned by search."""

    id: str = Field(..., description="Unique flight ID")
    flight_number: str = Field(..., description="Marketing flight number")
    airline: str = Field(..., description="Operating airline")
    aircraft: str | None = Field(None, description="Aircraft type")
    origin: str = Field(..., description="Origin IATA code")
    destination: str = Field(..., description="Destination IATA code")
    departure_time: datetime = Field(..., description="Scheduled departure (UTC)")
    arrival_time: datetime = Field(..., description="Scheduled arrival (UTC)")
    duration: int = Field(..., description="Duration in minutes")
    status: FlightStatus = Field(..., description="Operational status")
    cabin_class: CabinClass = Field(..., description="Cabin these figures refer to")
    price: Money = Field(..., description="Unit price for the cabin")
    available_seats: int = Field(..., ge=0, description="Seats left in the cabin")


class FlightDetail(ApiModel):
    """Flight with every cabin's fare."""

    id: str = Field(..., description="Unique flight ID")
    flight_number: str = Field(..., description="Marketing flight number")
    airline: str = Field(..., description="Operating airline")
    aircraft: str | None = Field(None, description="Aircraft type")
    origin: str = Field(..., description="Origin IATA code")
    destination: str = Field(..., description="Destination IATA code")
    departure_time: datetime = Field(..., description="Scheduled departure (UTC)")
    arrival_time: datetime = Field(..., description="Scheduled arrival (UTC)")
    duration: int = Field(..., description="Duration in minutes")
    status: FlightStatus = Field(..., description="Operational status")
    cabins: list[CabinFare] = Field(default_factory=list, description="Per-cabin fares")


class FlightSearchResponse(ApiModel):
    """Response schema for flight search."""

    flights: list[Flight] = Field(..., description="Matching flights")
    total: int = Field(..., ge=0, description="Number of matching flights")
    search_criteria: FlightSearchRequest = Field(..., description="Echo of the search request")


class Airport(ApiModel):
    """Airport response schema."""

    id: str = Field(..., description="Unique airport ID")
    code: str = Field(..., description="IATA code")
    name: str = Field(..., description="Airport name")
    city: str = Field(..., description="City served")
    country: str = Field(..., description="Country")


class AirportSearchResponse(ApiModel):
    """Response schema for airport search."""

    data: list[Airport] = Field(..., description="Matching airports")
    success: bool = Field(True, description="Always true for a completed search")
