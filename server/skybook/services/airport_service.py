"""Airport service for listing and searching airports."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.airport import Airport
from ..schemas.flight import Airport as AirportSchema

logger = logging.getLogger(__name__)


def to_airport_schema(airport: Airport) -> AirportSchema:
    """Convert airport model to schema."""
    return AirportSchema(
        id=str(airport.id),
        code=airport.iata_code,
        name=airport.name,
        city=airport.city,
        country=airport.country,
    )


class AirportService:
    """Service for airport-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_airports(self) -> list[Airport]:
        """Return all airports ordered by IATA code."""
        result = await self.db.execute(select(Airport).order_by(Airport.iata_code))
        return list(result.scalars())

    async def search_airports(self, query: str) -> list[Airport]:
        """
        Case-insensitive substring search over code, name and city.

        The airport table is small reference data, so matching runs over the
        full list in memory. A blank query matches nothing.
        """
        needle = (query or "").strip().lower()
        if not needle:
            return []

        airports = await self.list_airports()
        matches = [
            airport for airport in airports
            if needle in airport.iata_code.lower()
            or needle in airport.name.lower()
            or needle in airport.city.lower()
        ]

        logger.debug(
            "Airport search completed",
            extra={"query": query, "total_found": len(matches)}
        )

        return matches
