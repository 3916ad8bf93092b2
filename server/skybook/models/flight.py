"""Flight, per-cabin price and per-cabin seat model definitions."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .booking import Booking


class CabinClass(str, Enum):
    """Cabin class enumeration."""
    ECONOMY = "ECONOMY"
    PREMIUM_ECONOMY = "PREMIUM_ECONOMY"
    BUSINESS = "BUSINESS"
    FIRST = "FIRST"


class FlightStatus(str, Enum):
    """Flight status enumeration."""
    SCHEDULED = "scheduled"
    DELAYED = "delayed"
    CANCELLED = "cancelled"
    DEPARTED = "departed"
    ARRIVED = "arrived"


class Flight(Base):
    """Flight entity representing one scheduled flight leg."""

    __tablename__ = "flights"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Flight information
    flight_number: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    airline: Mapped[str] = mapped_column(String(128), nullable=False)
    aircraft: Mapped[str | None] = mapped_column(String(128), nullable=True)
    origin: Mapped[str] = mapped_column(String(3), nullable=False, index=True)
    destination: Mapped[str] = mapped_column(String(3), nullable=False, index=True)

    # Schedule (naive UTC)
    departure_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    arrival_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[FlightStatus] = mapped_column(
        String(20),
        nullable=False,
        default=FlightStatus.SCHEDULED,
        index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_flight_duration_positive"),
        CheckConstraint("arrival_time > departure_time", name="ck_flight_arrival_after_departure"),
        CheckConstraint("origin <> destination", name="ck_flight_origin_ne_destination"),
    )

    # Relationships
    prices: Mapped[list["FlightPrice"]] = relationship(
        "FlightPrice",
        back_populates="flight",
        cascade="all, delete-orphan",
        lazy="selectin"
    )
    seats: Mapped[list["FlightSeat"]] = relationship(
        "FlightSeat",
        back_populates="flight",
        cascade="all, delete-orphan",
        lazy="selectin"
    )
    bookings: Mapped[list["Booking"]] = relationship(
        "Booking",
        back_populates="flight",
        foreign_keys="Booking.flight_id"
    )

    def __repr__(self) -> str:
        return (
            f"<Flight(id={self.id}, number='{self.flight_number}', "
            f"{self.origin}->{self.destination}, departs={self.departure_time})>"
        )


class FlightPrice(Base):
    """Price of one cabin class on a flight, in minor currency units."""

    __tablename__ = "flight_prices"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    flight_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("flights.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    cabin_class: Mapped[CabinClass] = mapped_column(String(20), nullable=False)
    price_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    price_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    __table_args__ = (
        UniqueConstraint("flight_id", "cabin_class", name="uq_flight_price_cabin"),
        CheckConstraint("price_amount >= 0", name="ck_flight_price_amount_non_negative"),
        CheckConstraint("length(price_currency) = 3", name="ck_flight_price_currency_length"),
    )

    flight: Mapped["Flight"] = relationship("Flight", back_populates="prices")

    def __repr__(self) -> str:
        return (
            f"<FlightPrice(flight_id={self.flight_id}, cabin={self.cabin_class}, "
            f"price={self.price_amount} {self.price_currency})>"
        )


class FlightSeat(Base):
    """Seat inventory of one cabin class on a flight."""

    __tablename__ = "flight_seats"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    flight_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("flights.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    cabin_class: Mapped[CabinClass] = mapped_column(String(20), nullable=False)
    total_seats: Mapped[int] = mapped_column(Integer, nullable=False)
    available_seats: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("flight_id", "cabin_class", name="uq_flight_seat_cabin"),
        CheckConstraint("total_seats >= 0", name="ck_flight_seat_total_non_negative"),
        CheckConstraint("available_seats >= 0", name="ck_flight_seat_available_non_negative"),
        CheckConstraint("available_seats <= total_seats", name="ck_flight_seat_available_lte_total"),
    )

    flight: Mapped["Flight"] = relationship("Flight", back_populates="seats")

    def __repr__(self) -> str:
        return (
            f"<FlightSeat(flight_id={self.flight_id}, cabin={self.cabin_class}, "
            f"seats={self.available_seats}/{self.total_seats})>"
        )
