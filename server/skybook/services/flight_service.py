"""Flight service for search, fares and seat inventory."""

import logging
from datetime import datetime, time, timedelta
from uuid import UUID

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InsufficientSeatsError, NotFoundError, ValidationError
from ..models.flight import CabinClass, Flight, FlightPrice, FlightSeat, FlightStatus
from ..schemas.common import Money
from ..schemas.flight import CabinFare, FlightDetail, FlightSearchRequest, FlightSearchResponse
from ..schemas.flight import Flight as FlightSchema

logger = logging.getLogger(__name__)


def parse_uuid(value: str | UUID, resource_type: str) -> UUID:
    """Parse an identifier, treating malformed ids as unknown resources."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (ValueError, TypeError):
        raise NotFoundError(resource_type=resource_type, resource_id=str(value))


def to_flight_summary(flight: Flight, price: FlightPrice, seat: FlightSeat) -> FlightSchema:
    """Convert a flight and one cabin's fare rows to the search schema."""
    return FlightSchema(
        id=str(flight.id),
        flight_number=flight.flight_number,
        airline=flight.airline,
        aircraft=flight.aircraft,
        origin=flight.origin,
        destination=flight.destination,
        departure_time=flight.departure_time,
        arrival_time=flight.arrival_time,
        duration=flight.duration_minutes,
        status=flight.status,
        cabin_class=seat.cabin_class,
        price=Money(amount=price.price_amount, currency=price.price_currency),
        available_seats=seat.available_seats,
    )


def to_flight_detail(flight: Flight) -> FlightDetail:
    """Convert a flight with all of its cabins to the detail schema."""
    prices = {CabinClass(p.cabin_class): p for p in flight.prices}
    seats = {CabinClass(s.cabin_class): s for s in flight.seats}

    cabins = []
    for cabin in CabinClass:
        if cabin not in prices and cabin not in seats:
            continue
        price = prices.get(cabin)
        seat = seats.get(cabin)
        cabins.append(CabinFare(
            cabin_class=cabin,
            price=Money(amount=price.price_amount, currency=price.price_currency) if price else None,
            available_seats=seat.available_seats if seat else 0,
            total_seats=seat.total_seats if seat else 0,
        ))

    return FlightDetail(
        id=str(flight.id),
        flight_number=flight.flight_number,
        airline=flight.airline,
        aircraft=flight.aircraft,
        origin=flight.origin,
        destination=flight.destination,
        departure_time=flight.departure_time,
        arrival_time=flight.arrival_time,
        duration=flight.duration_minutes,
        status=flight.status,
        cabins=cabins,
    )


class FlightService:
    """Service for flight-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def search_flights(self, request: FlightSearchRequest) -> FlightSearchResponse:
        """
        Search flights for one route, day and cabin.

        Route and cabin are matched in SQL; the calendar-day window and the
        seat requirement are applied to the fetched rows.

        Args:
            request: Search criteria

        Returns:
            Matching flights ordered by departure time
        """
        cabin = CabinClass(request.cabin_class).value

        stmt = (
            select(Flight, FlightPrice, FlightSeat)
            .join(FlightPrice, and_(FlightPrice.flight_id == Flight.id, FlightPrice.cabin_class == cabin))
            .join(FlightSeat, and_(FlightSeat.flight_id == Flight.id, FlightSeat.cabin_class == cabin))
            .where(
                Flight.origin == request.origin,
                Flight.destination == request.destination,
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        rows = result.all()

        day_start = datetime.combine(request.departure_date, time.min)
        day_end = day_start + timedelta(days=1)

        matches = [
            (flight, price, seat)
            for flight, price, seat in rows
            if day_start <= flight.departure_time < day_end
            and seat.available_seats >= request.passengers
        ]
        matches.sort(key=lambda row: row[0].departure_time)

        flights = [to_flight_summary(flight, price, seat) for flight, price, seat in matches]

        logger.info(
            "Flight search completed",
            extra={
                "origin": request.origin,
                "destination": request.destination,
                "departure_date": request.departure_date.isoformat(),
                "cabin_class": cabin,
                "passengers": request.passengers,
                "route_candidates": len(rows),
                "total_found": len(flights)
            }
        )

        return FlightSearchResponse(
            flights=flights,
            total=len(flights),
            search_criteria=request
        )

    async def list_flights(self) -> list[Flight]:
        """Return every flight ordered by departure time."""
        stmt = (
            select(Flight)
            .order_by(Flight.departure_time)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def get_flight_by_id(self, flight_id: UUID) -> Flight | None:
        """
        Get flight by ID.

        Args:
            flight_id: Flight ID to search for

        Returns:
            Flight if found, None otherwise
        """
        stmt = (
            select(Flight)
            .where(Flight.id == flight_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_flight_by_id_or_raise(self, flight_id: str | UUID) -> Flight:
        """
        Get flight by ID or raise NotFoundError.

        Raises:
            NotFoundError: If flight not found
        """
        flight_uuid = parse_uuid(flight_id, "flight")
        flight = await self.get_flight_by_id(flight_uuid)
        if not flight:
            logger.warning(
                "Flight not found",
                extra={"flight_id": str(flight_id)}
            )
            raise NotFoundError(
                resource_type="flight",
                resource_id=str(flight_id)
            )
        return flight

    async def get_price(self, flight_id: UUID, cabin_class: CabinClass) -> FlightPrice | None:
        """Get the price row of one cabin on a flight."""
        stmt = select(FlightPrice).where(
            FlightPrice.flight_id == flight_id,
            FlightPrice.cabin_class == CabinClass(cabin_class).value
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_seat_inventory(self, flight_id: UUID, cabin_class: CabinClass) -> FlightSeat | None:
        """Get the current seat row of one cabin on a flight."""
        stmt = (
            select(FlightSeat)
            .where(
                FlightSeat.flight_id == flight_id,
                FlightSeat.cabin_class == CabinClass(cabin_class).value
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def adjust_available_seats(self, flight_id: UUID, cabin_class: CabinClass, delta: int) -> int:
        """
        Atomically add ``delta`` to a cabin's available seats.

        The bounds check and the write are one conditional UPDATE, so two
        concurrent bookings cannot both take the last seats. The change is
        not committed here; it joins the caller's transaction.

        Args:
            flight_id: Flight to adjust
            cabin_class: Cabin to adjust
            delta: Negative to take seats, positive to release them

        Returns:
            The new available seat count

        Raises:
            ValidationError: If the flight has no seat row for the cabin
            InsufficientSeatsError: If the result would leave [0, total_seats]
        """
        cabin = CabinClass(cabin_class).value

        stmt = (
            update(FlightSeat)
            .where(
                FlightSeat.flight_id == flight_id,
                FlightSeat.cabin_class == cabin,
                FlightSeat.available_seats + delta >= 0,
                FlightSeat.available_seats + delta <= FlightSeat.total_seats,
            )
            .values(available_seats=FlightSeat.available_seats + delta)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)

        seat = await self.get_seat_inventory(flight_id, cabin_class)
        if seat is None:
            raise ValidationError(detail=f"Seat availability not found for {cabin} on flight {flight_id}")

        if result.rowcount == 0:
            logger.warning(
                "Seat adjustment rejected",
                extra={
                    "flight_id": str(flight_id),
                    "cabin_class": cabin,
                    "delta": delta,
                    "available_seats": seat.available_seats,
                    "total_seats": seat.total_seats
                }
            )
            raise InsufficientSeatsError(
                flight_id=str(flight_id),
                cabin_class=cabin,
                requested_seats=abs(delta),
                available_seats=seat.available_seats
            )

        logger.debug(
            "Seats adjusted",
            extra={
                "flight_id": str(flight_id),
                "cabin_class": cabin,
                "delta": delta,
                "available_seats": seat.available_seats
            }
        )

        return seat.available_seats

    @staticmethod
    def is_bookable(flight: Flight) -> bool:
        """Return True if new bookings may be taken on the flight."""
        return flight.status != FlightStatus.CANCELLED
