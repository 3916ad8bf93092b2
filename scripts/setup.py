#!/usr/bin/env python3
"""Setup script for the SkyBook flight booking API."""

import asyncio
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command
from alembic.config import Config
from sqlalchemy import func, select

from skybook.core.database import async_session_factory, close_db
from skybook.models import Airport, CabinClass, Flight, FlightPrice, FlightSeat

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_AIRPORTS = [
    ("JFK", "John F. Kennedy International Airport", "New York", "United States"),
    ("LAX", "Los Angeles International Airport", "Los Angeles", "United States"),
    ("LHR", "Heathrow Airport", "London", "United Kingdom"),
    ("CDG", "Charles de Gaulle Airport", "Paris", "France"),
    ("DEL", "Indira Gandhi International Airport", "New Delhi", "India"),
    ("BOM", "Chhatrapati Shivaji Maharaj International Airport", "Mumbai", "India"),
]

# (number, airline, aircraft, origin, destination, departure hour, duration minutes)
SAMPLE_ROUTES = [
    ("SB100", "SkyBook Air", "Boeing 777-300ER", "JFK", "LHR", 19, 415),
    ("SB101", "SkyBook Air", "Boeing 777-300ER", "LHR", "JFK", 11, 480),
    ("SB200", "SkyBook Air", "Airbus A321neo", "JFK", "LAX", 8, 370),
    ("SB300", "SkyBook Air", "Airbus A350-900", "LHR", "CDG", 7, 75),
    ("SB400", "SkyBook Air", "Boeing 787-9", "DEL", "BOM", 6, 130),
]

# (cabin, seats, price in cents)
SAMPLE_CABINS = [
    (CabinClass.ECONOMY, 150, 45000),
    (CabinClass.PREMIUM_ECONOMY, 40, 90000),
    (CabinClass.BUSINESS, 30, 250000),
    (CabinClass.FIRST, 8, 600000),
]


def run_migrations() -> None:
    """Bring the database schema up to date."""
    logger.info("Running database migrations...")

    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))
    command.upgrade(alembic_cfg, "head")

    logger.info("Database migrations completed")


async def create_sample_data(days: int = 14) -> None:
    """Seed airports and a fortnight of daily flights."""
    logger.info("Creating sample data...")

    async with async_session_factory() as db:
        try:
            existing = await db.scalar(select(func.count()).select_from(Flight))
            if existing:
                logger.info("Sample data already exists, skipping...")
                return

            for code, name, city, country in SAMPLE_AIRPORTS:
                db.add(Airport(iata_code=code, name=name, city=city, country=country))

            today = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
            for day in range(1, days + 1):
                for number, airline, aircraft, origin, destination, hour, minutes in SAMPLE_ROUTES:
                    departure_time = today + timedelta(days=day, hours=hour)
                    flight = Flight(
                        flight_number=number,
                        airline=airline,
                        aircraft=aircraft,
                        origin=origin,
                        destination=destination,
                        departure_time=departure_time,
                        arrival_time=departure_time + timedelta(minutes=minutes),
                        duration_minutes=minutes,
                    )
                    flight.prices = [
                        FlightPrice(cabin_class=cabin, price_amount=price, price_currency="USD")
                        for cabin, _, price in SAMPLE_CABINS
                    ]
                    flight.seats = [
                        FlightSeat(cabin_class=cabin, total_seats=seats, available_seats=seats)
                        for cabin, seats, _ in SAMPLE_CABINS
                    ]
                    db.add(flight)

            await db.commit()
            logger.info(
                "Sample data created successfully!",
                extra={"airports": len(SAMPLE_AIRPORTS), "flights": days * len(SAMPLE_ROUTES)}
            )

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create sample data: {e}")
            raise


async def main():
    """Main setup function."""
    logger.info("Starting SkyBook API setup...")

    # Alembic's env.py drives its own event loop
    await asyncio.to_thread(run_migrations)

    await create_sample_data()
    await close_db()

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn skybook.main:app --reload")


if __name__ == "__main__":
    asyncio.run(main())
