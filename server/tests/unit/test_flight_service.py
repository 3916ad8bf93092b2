"""Unit tests for flight service."""

from datetime import date, datetime
from uuid import uuid4

import pytest

from skybook.core.exceptions import InsufficientSeatsError, NotFoundError
from skybook.models import CabinClass
from skybook.schemas.flight import FlightSearchRequest
from skybook.services.flight_service import FlightService, to_flight_detail


@pytest.mark.asyncio
async def test_search_flights_by_day(test_session, flight_factory):
    """Only flights departing on the requested calendar day match."""
    late = await flight_factory(flight_number="SB102", departure_time=datetime(2030, 6, 1, 23, 30))
    early = await flight_factory(flight_number="SB101", departure_time=datetime(2030, 6, 1, 0, 0))
    await flight_factory(flight_number="SB103", departure_time=datetime(2030, 6, 2, 0, 0))
    await flight_factory(flight_number="SB104", departure_time=datetime(2030, 5, 31, 23, 59))

    response = await FlightService(test_session).search_flights(
        FlightSearchRequest(origin="JFK", destination="LAX", departure_date=date(2030, 6, 1))
    )

    assert response.total == 2
    assert [f.id for f in response.flights] == [str(early.id), str(late.id)]


@pytest.mark.asyncio
async def test_search_flights_route(test_session, flight_factory):
    """Route codes are case-insensitive and direction matters."""
    flight = await flight_factory()
    await flight_factory(flight_number="SB200", origin="LAX", destination="JFK")

    response = await FlightService(test_session).search_flights(
        FlightSearchRequest(origin="jfk", destination="lax", departure_date=date(2030, 6, 1))
    )

    assert [f.id for f in response.flights] == [str(flight.id)]
    assert response.search_criteria.origin == "JFK"


@pytest.mark.asyncio
async def test_search_flights_cabin_and_passengers(test_session, flight_factory):
    """Flights need a fare and enough seats in the requested cabin."""
    roomy = await flight_factory(
        flight_number="SB300",
        cabins={CabinClass.ECONOMY: (5, 10000), CabinClass.BUSINESS: (4, 50000)}
    )
    await flight_factory(
        flight_number="SB301",
        cabins={CabinClass.ECONOMY: (5, 10000), CabinClass.BUSINESS: (2, 45000)}
    )
    await flight_factory(flight_number="SB302")

    response = await FlightService(test_session).search_flights(
        FlightSearchRequest(
            origin="JFK",
            destination="LAX",
            departure_date=date(2030, 6, 1),
            cabin_class=CabinClass.BUSINESS,
            passengers=3
        )
    )

    assert response.total == 1
    result = response.flights[0]
    assert result.id == str(roomy.id)
    assert result.cabin_class == CabinClass.BUSINESS
    assert result.price.amount == 50000
    assert result.available_seats == 4
    assert result.duration == 360


@pytest.mark.asyncio
async def test_search_flights_no_results(test_session):
    """Test searching an empty schedule."""
    response = await FlightService(test_session).search_flights(
        FlightSearchRequest(origin="JFK", destination="LAX", departure_date=date(2030, 6, 1))
    )

    assert response.total == 0
    assert response.flights == []


def test_search_request_bounds():
    """Passenger counts outside 1..9 are rejected."""
    with pytest.raises(ValueError):
        FlightSearchRequest(origin="JFK", destination="LAX", departure_date=date(2030, 6, 1), passengers=0)
    with pytest.raises(ValueError):
        FlightSearchRequest(origin="JFK", destination="LAX", departure_date=date(2030, 6, 1), passengers=10)


@pytest.mark.asyncio
async def test_get_flight_by_id(test_session, flight_factory):
    """Test getting a flight by ID."""
    flight = await flight_factory()

    found = await FlightService(test_session).get_flight_by_id_or_raise(str(flight.id))

    assert found.id == flight.id
    assert found.flight_number == "SB100"


@pytest.mark.asyncio
async def test_get_flight_not_found(test_session):
    """Unknown and malformed ids raise NotFoundError."""
    service = FlightService(test_session)

    assert await service.get_flight_by_id(uuid4()) is None
    with pytest.raises(NotFoundError):
        await service.get_flight_by_id_or_raise(str(uuid4()))
    with pytest.raises(NotFoundError):
        await service.get_flight_by_id_or_raise("SB100")


@pytest.mark.asyncio
async def test_list_flights_ordered(test_session, flight_factory):
    """Flights are listed by departure time."""
    later = await flight_factory(flight_number="SB2", departure_time=datetime(2030, 7, 1, 8, 0))
    sooner = await flight_factory(flight_number="SB1", departure_time=datetime(2030, 6, 1, 8, 0))

    flights = await FlightService(test_session).list_flights()

    assert [f.id for f in flights] == [sooner.id, later.id]


@pytest.mark.asyncio
async def test_flight_detail_lists_cabins(test_session, flight_factory):
    """The detail view carries every cabin in cabin order."""
    flight = await flight_factory(
        cabins={CabinClass.BUSINESS: (4, 50000), CabinClass.ECONOMY: (120, 10000)}
    )

    detail = to_flight_detail(await FlightService(test_session).get_flight_by_id(flight.id))

    assert [c.cabin_class for c in detail.cabins] == [CabinClass.ECONOMY, CabinClass.BUSINESS]
    assert detail.cabins[1].price.amount == 50000
    assert detail.cabins[1].total_seats == 4


@pytest.mark.asyncio
async def test_adjust_available_seats(test_session, flight_factory):
    """Seats can be taken and released within bounds."""
    flight = await flight_factory()
    service = FlightService(test_session)

    assert await service.adjust_available_seats(flight.id, CabinClass.ECONOMY, -5) == 0
    assert await service.adjust_available_seats(flight.id, CabinClass.ECONOMY, 2) == 2
    await test_session.commit()

    seat = await service.get_seat_inventory(flight.id, CabinClass.ECONOMY)
    assert seat.available_seats == 2


@pytest.mark.asyncio
async def test_adjust_available_seats_bounds(test_session, flight_factory):
    """Seats never drop below zero or exceed the cabin size."""
    flight = await flight_factory()
    service = FlightService(test_session)

    with pytest.raises(InsufficientSeatsError):
        await service.adjust_available_seats(flight.id, CabinClass.ECONOMY, -6)
    with pytest.raises(InsufficientSeatsError):
        await service.adjust_available_seats(flight.id, CabinClass.ECONOMY, 1)

    seat = await service.get_seat_inventory(flight.id, CabinClass.ECONOMY)
    assert seat.available_seats == 5
