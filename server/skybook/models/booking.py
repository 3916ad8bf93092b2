"""Booking and Passenger model definitions."""

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base
from .flight import CabinClass

if TYPE_CHECKING:
    from .flight import Flight
    from .user import User


class BookingStatus(str, Enum):
    """Booking status enumeration."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Allowed status moves; statuses missing from the map are terminal.
BOOKING_STATUS_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED}),
}


def can_transition(current: str, requested: str) -> bool:
    """Return True if a booking may move from ``current`` to ``requested``."""
    allowed = BOOKING_STATUS_TRANSITIONS.get(BookingStatus(current), frozenset())
    return BookingStatus(requested) in allowed


class Booking(Base):
    """Booking entity owned by exactly one user."""

    __tablename__ = "bookings"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Owner and flights
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    flight_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("flights.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    return_flight_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("flights.id", ondelete="RESTRICT"),
        nullable=True
    )

    # Booking details
    cabin_class: Mapped[CabinClass] = mapped_column(String(20), nullable=False)
    total_price_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    total_price_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    status: Mapped[BookingStatus] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True
    )
    booking_reference: Mapped[str] = mapped_column(String(8), nullable=False, unique=True, index=True)
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)

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
        server_default=func.now()
    )

    # Constraints
    __table_args__ = (
        CheckConstraint("total_price_amount >= 0", name="ck_booking_total_price_non_negative"),
        CheckConstraint("length(booking_reference) = 8", name="ck_booking_reference_length"),
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="bookings")
    flight: Mapped["Flight"] = relationship(
        "Flight",
        back_populates="bookings",
        foreign_keys=[flight_id]
    )
    passengers: Mapped[list["Passenger"]] = relationship(
        "Passenger",
        back_populates="booking",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Passenger.created_at"
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, reference='{self.booking_reference}', "
            f"flight_id={self.flight_id}, status={self.status})>"
        )


class Passenger(Base):
    """Passenger travelling on a booking."""

    __tablename__ = "passengers"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    booking_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    last_name: Mapped[str] = mapped_column(String(128), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    nationality: Mapped[str] = mapped_column(String(64), nullable=False)
    passport_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    aadhaar_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    seat_number: Mapped[str | None] = mapped_column(String(8), nullable=True)
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("age IS NULL OR (age >= 0 AND age <= 120)", name="ck_passenger_age_range"),
    )

    booking: Mapped["Booking"] = relationship("Booking", back_populates="passengers")

    def __repr__(self) -> str:
        return f"<Passenger(id={self.id}, booking_id={self.booking_id}, name='{self.first_name} {self.last_name}')>"
