"""Unit tests for airport service."""

import pytest
import pytest_asyncio

from skybook.models import Airport
from skybook.services.airport_service import AirportService


@pytest_asyncio.fixture
async def airports(test_session):
    rows = [
        Airport(iata_code="LHR", name="Heathrow Airport", city="London", country="United Kingdom"),
        Airport(iata_code="JFK", name="John F. Kennedy International Airport", city="New York", country="United States"),
        Airport(iata_code="LGW", name="Gatwick Airport", city="London", country="United Kingdom"),
    ]
    test_session.add_all(rows)
    await test_session.commit()
    return rows


@pytest.mark.asyncio
async def test_list_airports_ordered_by_code(test_session, airports):
    """Test listing airports."""
    result = await AirportService(test_session).list_airports()

    assert [a.iata_code for a in result] == ["JFK", "LGW", "LHR"]


@pytest.mark.asyncio
async def test_search_airports_by_city(test_session, airports):
    """City matches are case-insensitive."""
    result = await AirportService(test_session).search_airports("london")

    assert {a.iata_code for a in result} == {"LHR", "LGW"}


@pytest.mark.asyncio
async def test_search_airports_by_code_and_name(test_session, airports):
    service = AirportService(test_session)

    assert [a.iata_code for a in await service.search_airports("jfk")] == ["JFK"]
    assert [a.iata_code for a in await service.search_airports("Gatwick")] == ["LGW"]


@pytest.mark.asyncio
async def test_search_airports_blank_query(test_session, airports):
    """A blank query matches nothing."""
    service = AirportService(test_session)

    assert await service.search_airports("") == []
    assert await service.search_airports("   ") == []
