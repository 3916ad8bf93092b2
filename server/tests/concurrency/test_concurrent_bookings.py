"""Concurrency tests for booking operations.

Each test opens two sessions on a file-backed database and interleaves
them so that one acts on a stale read of the other's committed work.
"""

from datetime import date, datetime, timedelta
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from skybook.core.database import Base
from skybook.core.exceptions import ConflictError, InsufficientSeatsError, InvalidStatusTransition
from skybook.models import *  # noqa: F403 - Import all models
from skybook.models import Booking, BookingStatus, CabinClass, Flight, FlightPrice, FlightSeat
from skybook.schemas.booking import CreateBookingRequest, PassengerInput, UpdateBookingRequest
from skybook.services.booking_service import BookingService
from skybook.services.flight_service import FlightService

USER_ID = uuid4()


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Sessions backed by separate connections to one database file."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def flight(session_factory):
    """A flight with five economy seats."""
    async with session_factory() as db:
        departure = datetime(2030, 6, 1, 9, 0)
        flight = Flight(
            flight_number="SB500",
            airline="SkyBook Air",
            origin="JFK",
            destination="LAX",
            departure_time=departure,
            arrival_time=departure + timedelta(hours=6),
            duration_minutes=360,
        )
        flight.prices = [FlightPrice(cabin_class=CabinClass.ECONOMY.value, price_amount=10000, price_currency="USD")]
        flight.seats = [FlightSeat(cabin_class=CabinClass.ECONOMY.value, total_seats=5, available_seats=5)]
        db.add(flight)
        await db.commit()
        return flight


def booking_request(flight, count: int) -> CreateBookingRequest:
    return CreateBookingRequest(
        flight_id=str(flight.id),
        passengers=[
            PassengerInput(first_name=f"P{i}", last_name="Racer", date_of_birth=date(1990, 1, 1), nationality="US")
            for i in range(count)
        ],
        cabin_class=CabinClass.ECONOMY,
    )


async def current_state(session_factory, flight) -> tuple[int, int]:
    """Return (available seats, booking count) from a fresh session."""
    async with session_factory() as db:
        seat = await FlightService(db).get_seat_inventory(flight.id, CabinClass.ECONOMY)
        bookings = await db.scalar(select(func.count()).select_from(Booking))
        return seat.available_seats, bookings


@pytest.mark.asyncio
async def test_stale_availability_check_cannot_overbook(session_factory, flight, monkeypatch):
    """A booking that passed the seat check is rejected if seats went in the meantime."""
    async with session_factory() as first_db, session_factory() as second_db:
        first = BookingService(first_db)
        second = BookingService(second_db)
        original_code = first._generate_unique_booking_code

        async def book_elsewhere_first():
            # Runs after the first booking's availability check passed with 5 seats
            await second.create_booking(USER_ID, booking_request(flight, 4))
            return await original_code()

        monkeypatch.setattr(first, "_generate_unique_booking_code", book_elsewhere_first)

        with pytest.raises(InsufficientSeatsError):
            await first.create_booking(USER_ID, booking_request(flight, 2))

    available, bookings = await current_state(session_factory, flight)
    assert available == 1
    assert bookings == 1


@pytest.mark.asyncio
async def test_stale_seat_row_cannot_go_negative(session_factory, flight):
    """Seat adjustments are checked against the stored count, not a cached one."""
    async with session_factory() as first_db, session_factory() as second_db:
        first = FlightService(first_db)
        second = FlightService(second_db)

        stale = await first.get_seat_inventory(flight.id, CabinClass.ECONOMY)
        assert stale.available_seats == 5

        await second.adjust_available_seats(flight.id, CabinClass.ECONOMY, -4)
        await second_db.commit()

        with pytest.raises(InsufficientSeatsError):
            await first.adjust_available_seats(flight.id, CabinClass.ECONOMY, -2)
        await first_db.rollback()

        assert await first.adjust_available_seats(flight.id, CabinClass.ECONOMY, -1) == 0
        await first_db.commit()

    available, _ = await current_state(session_factory, flight)
    assert available == 0


@pytest.mark.asyncio
async def test_racing_cancellations_release_seats_once(session_factory, flight):
    """Two cancels of the same booking return its seats only once."""
    async with session_factory() as db:
        booking, _ = await BookingService(db).create_booking(USER_ID, booking_request(flight, 3))

    async with session_factory() as first_db, session_factory() as second_db:
        first = BookingService(first_db)
        second = BookingService(second_db)

        # Both sessions see the booking as pending
        stale = await first.get_booking_by_id_or_raise(booking.id)
        await second.get_booking_by_id_or_raise(booking.id)

        await second.cancel_booking(booking.id)

        with pytest.raises(ConflictError):
            await first._cancel_in_transaction(stale)
        await first_db.rollback()

    available, _ = await current_state(session_factory, flight)
    assert available == 5


async def booking_status(session_factory, booking_id) -> str:
    async with session_factory() as db:
        return (await BookingService(db).get_booking_by_id_or_raise(booking_id)).status


def race_after_read(monkeypatch, service: BookingService, interleaved):
    """Run ``interleaved`` right after ``service`` reads the booking, once."""
    original_get = service.get_booking_by_id_or_raise

    async def read_then_interleave(booking_id, user_id=None):
        booking = await original_get(booking_id, user_id)
        monkeypatch.setattr(service, "get_booking_by_id_or_raise", original_get)
        await interleaved(booking)
        return booking

    monkeypatch.setattr(service, "get_booking_by_id_or_raise", read_then_interleave)


@pytest.mark.asyncio
async def test_confirm_cannot_revive_booking_cancelled_meanwhile(session_factory, flight, monkeypatch):
    """A confirmation based on a stale pending read loses to a committed cancel."""
    async with session_factory() as db:
        booking, _ = await BookingService(db).create_booking(USER_ID, booking_request(flight, 3))

    async with session_factory() as first_db, session_factory() as second_db:
        first = BookingService(first_db)
        second = BookingService(second_db)

        async def cancel_elsewhere(_booking):
            await second.cancel_booking(booking.id)

        race_after_read(monkeypatch, first, cancel_elsewhere)

        with pytest.raises(InvalidStatusTransition):
            await first.update_booking(booking.id, UpdateBookingRequest(status=BookingStatus.CONFIRMED))

    assert await booking_status(session_factory, booking.id) == BookingStatus.CANCELLED.value
    available, _ = await current_state(session_factory, flight)
    assert available == 5


@pytest.mark.asyncio
async def test_cancel_cannot_reopen_booking_completed_meanwhile(session_factory, flight, monkeypatch):
    """A cancel based on a stale confirmed read loses to the completion worker."""
    async with session_factory() as db:
        service = BookingService(db)
        booking, _ = await service.create_booking(USER_ID, booking_request(flight, 3))
        await service.update_booking(booking.id, UpdateBookingRequest(status=BookingStatus.CONFIRMED))

    async with session_factory() as first_db, session_factory() as second_db:
        first = BookingService(first_db)
        second = BookingService(second_db)

        async def complete_elsewhere(_booking):
            # Well after the flight's arrival
            assert await second.complete_departed_bookings(now=datetime(2031, 1, 1)) == 1

        race_after_read(monkeypatch, first, complete_elsewhere)

        with pytest.raises(InvalidStatusTransition):
            await first.cancel_booking(booking.id)

    assert await booking_status(session_factory, booking.id) == BookingStatus.COMPLETED.value
    available, _ = await current_state(session_factory, flight)
    assert available == 2
