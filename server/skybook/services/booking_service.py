"""Booking service for business logic operations."""

import logging
import secrets
import string
import time
from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import (
    ConflictError,
    InsufficientSeatsError,
    InvalidStatusTransition,
    NotFoundError,
    ValidationError,
)
from ..core.observability import metrics_collector
from ..models.booking import Booking, BookingStatus, Passenger, can_transition
from ..models.flight import CabinClass, Flight
from ..models.user import User
from ..schemas.booking import Booking as BookingSchema
from ..schemas.booking import CreateBookingRequest, UpdateBookingRequest
from ..schemas.booking import Passenger as PassengerSchema
from ..schemas.common import Money
from .email_service import EmailService
from .flight_service import FlightService, parse_uuid
from .notification_relay import NotificationRelay

logger = logging.getLogger(__name__)

BASE36_ALPHABET = string.digits + string.ascii_uppercase

# Statuses a booking can be cancelled from
CANCELLABLE_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


def to_base36(value: int) -> str:
    """Encode a non-negative integer in upper-case base 36."""
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_e_ticket(booking_id: UUID | str, issued_at_ms: int | None = None) -> str:
    """Build the e-ticket token ``ET-<booking id prefix>-<issue time in base36>``."""
    if issued_at_ms is None:
        issued_at_ms = int(time.time() * 1000)
    return f"ET-{str(booking_id)[:8].upper()}-{to_base36(issued_at_ms)}"


def to_booking_schema(booking: Booking) -> BookingSchema:
    """Convert booking model to schema."""
    return BookingSchema(
        id=str(booking.id),
        user_id=str(booking.user_id),
        flight_id=str(booking.flight_id),
        return_flight_id=str(booking.return_flight_id) if booking.return_flight_id else None,
        passengers=[
            PassengerSchema(
                id=str(p.id),
                first_name=p.first_name,
                last_name=p.last_name,
                date_of_birth=p.date_of_birth,
                nationality=p.nationality,
                passport_number=p.passport_number,
                aadhaar_number=p.aadhaar_number,
                age=p.age,
                seat_number=p.seat_number,
                special_requests=p.special_requests,
            )
            for p in booking.passengers
        ],
        cabin_class=booking.cabin_class,
        total_price=Money(amount=booking.total_price_amount, currency=booking.total_price_currency),
        status=booking.status,
        booking_reference=booking.booking_reference,
        special_requests=booking.special_requests,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
    )


class BookingService:
    """Service for booking-related operations."""

    def __init__(
        self,
        db: AsyncSession,
        relay: NotificationRelay | None = None,
        email_service: EmailService | None = None,
    ):
        self.db = db
        self.relay = relay
        self.email_service = email_service
        self.flight_service = FlightService(db)

    def _generate_booking_code(self, length: int = 8) -> str:
        """Generate a random booking reference code."""
        alphabet = string.ascii_uppercase + string.digits
        return ''.join(secrets.choice(alphabet) for _ in range(length))

    async def _generate_unique_booking_code(self) -> str:
        booking_code = self._generate_booking_code()
        while await self.get_booking_by_reference(booking_code):
            booking_code = self._generate_booking_code()
        return booking_code

    async def create_booking(
        self,
        user_id: str | UUID,
        request: CreateBookingRequest,
        user_email: str | None = None,
    ) -> tuple[Booking, str]:
        """
        Create a pending booking and take its seats.

        The booking row, its passengers and the seat decrement are written in
        one transaction. The seat decrement is a conditional update, so the
        availability check cannot be raced by a concurrent booking.

        Args:
            user_id: Owner of the booking
            request: Booking creation request
            user_email: Address for the confirmation email

        Returns:
            The created booking and its e-ticket

        Raises:
            NotFoundError: If the flight or return flight does not exist
            ValidationError: If the flight is cancelled or has no fare for the cabin
            InsufficientSeatsError: If the cabin cannot fit every passenger
        """
        user_uuid = parse_uuid(user_id, "user")
        cabin = CabinClass(request.cabin_class)
        passenger_count = len(request.passengers)

        flight = await self.flight_service.get_flight_by_id_or_raise(request.flight_id)
        if not FlightService.is_bookable(flight):
            raise ValidationError(detail=f"Flight {flight.flight_number} is cancelled and cannot be booked")

        return_flight_id = None
        if request.return_flight_id:
            return_flight = await self.flight_service.get_flight_by_id_or_raise(request.return_flight_id)
            return_flight_id = return_flight.id

        price = await self.flight_service.get_price(flight.id, cabin)
        if price is None:
            raise ValidationError(detail=f"Price not found for {cabin.value} on flight {flight.flight_number}")

        seats = await self.flight_service.get_seat_inventory(flight.id, cabin)
        if seats is None:
            raise ValidationError(detail=f"Seat availability not found for {cabin.value} on flight {flight.flight_number}")

        if seats.available_seats < passenger_count:
            logger.warning(
                "Booking creation failed - insufficient seats",
                extra={
                    "flight_id": str(flight.id),
                    "cabin_class": cabin.value,
                    "requested_seats": passenger_count,
                    "available_seats": seats.available_seats
                }
            )
            metrics_collector.record_seat_rejection()
            raise InsufficientSeatsError(
                flight_id=str(flight.id),
                cabin_class=cabin.value,
                requested_seats=passenger_count,
                available_seats=seats.available_seats
            )

        total_price = price.price_amount * passenger_count
        booking_code = await self._generate_unique_booking_code()

        booking = Booking(
            user_id=user_uuid,
            flight_id=flight.id,
            return_flight_id=return_flight_id,
            cabin_class=cabin.value,
            total_price_amount=total_price,
            total_price_currency=price.price_currency,
            status=BookingStatus.PENDING.value,
            booking_reference=booking_code,
            special_requests=request.special_requests,
        )
        booking.passengers = [
            Passenger(
                first_name=p.first_name,
                last_name=p.last_name,
                date_of_birth=p.date_of_birth,
                nationality=p.nationality,
                passport_number=p.passport_number,
                aadhaar_number=p.aadhaar_number,
                age=p.age,
                seat_number=p.seat_number,
                special_requests=p.special_requests,
            )
            for p in request.passengers
        ]

        try:
            self.db.add(booking)
            await self.db.flush()
            remaining_seats = await self.flight_service.adjust_available_seats(flight.id, cabin, -passenger_count)
            await self.db.commit()
        except InsufficientSeatsError:
            await self.db.rollback()
            metrics_collector.record_seat_rejection()
            raise
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        e_ticket = generate_e_ticket(booking.id)
        metrics_collector.record_booking_created(cabin.value, passenger_count)

        logger.info(
            "Booking created successfully",
            extra={
                "booking_id": str(booking.id),
                "booking_reference": booking.booking_reference,
                "user_id": str(user_uuid),
                "flight_id": str(flight.id),
                "cabin_class": cabin.value,
                "passengers": passenger_count,
                "total_price_amount": total_price,
                "remaining_seats": remaining_seats
            }
        )

        booking_schema = to_booking_schema(booking)
        recipient = user_email or await self._owner_email(booking)
        if recipient:
            await self._send_email("confirmation", recipient, booking_schema, e_ticket)
        self._publish(booking_schema, "created", remaining_seats)

        return booking, e_ticket

    async def _current_status(self, booking_id: UUID) -> str | None:
        result = await self.db.execute(select(Booking.status).where(Booking.id == booking_id))
        return result.scalar_one_or_none()

    async def _move_status_in_transaction(self, booking: Booking, requested_status: BookingStatus) -> None:
        """
        Move a booking from the status it was read with to ``requested_status``, uncommitted.

        The write only matches while the stored status is still the one that
        was read, so a change committed elsewhere in the meantime is never
        overwritten.

        Raises:
            InvalidStatusTransition: If the stored status changed since the read
        """
        stmt = (
            update(Booking)
            .where(
                Booking.id == booking.id,
                Booking.status == booking.status
            )
            .values(status=requested_status.value, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount == 0:
            current_status = await self._current_status(booking.id)
            logger.warning(
                "Booking status changed concurrently",
                extra={
                    "booking_id": str(booking.id),
                    "read_status": booking.status,
                    "current_status": current_status,
                    "requested_status": requested_status.value
                }
            )
            raise InvalidStatusTransition(str(booking.id), current_status, requested_status.value)

    async def _cancel_in_transaction(self, booking: Booking) -> int:
        """
        Flip the booking to cancelled and release its seats, uncommitted.

        The status flip only matches bookings that are still pending or
        confirmed, so a booking cancelled or completed concurrently never
        has its seats released.

        Returns:
            The cabin's new available seat count
        """
        stmt = (
            update(Booking)
            .where(
                Booking.id == booking.id,
                Booking.status.in_(CANCELLABLE_STATUSES)
            )
            .values(status=BookingStatus.CANCELLED.value, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount == 0:
            current_status = await self._current_status(booking.id)
            if current_status == BookingStatus.CANCELLED.value:
                raise ConflictError(
                    detail=f"Booking {booking.id} is already cancelled",
                    conflicting_resource={"booking_id": str(booking.id), "status": current_status}
                )
            raise InvalidStatusTransition(str(booking.id), current_status, BookingStatus.CANCELLED.value)

        return await self.flight_service.adjust_available_seats(
            booking.flight_id,
            CabinClass(booking.cabin_class),
            len(booking.passengers)
        )

    def _check_cancellable(self, booking: Booking) -> None:
        if booking.status == BookingStatus.CANCELLED:
            logger.warning(
                "Booking cancellation failed - already cancelled",
                extra={"booking_id": str(booking.id)}
            )
            raise ConflictError(
                detail=f"Booking {booking.id} is already cancelled",
                conflicting_resource={"booking_id": str(booking.id), "status": booking.status}
            )
        if not can_transition(booking.status, BookingStatus.CANCELLED):
            raise InvalidStatusTransition(str(booking.id), booking.status, BookingStatus.CANCELLED.value)

    async def cancel_booking(self, booking_id: str | UUID, user_id: str | UUID | None = None) -> Booking:
        """
        Cancel a booking and return its seats to the cabin.

        Raises:
            NotFoundError: If booking not found (or not owned by ``user_id``)
            ConflictError: If the booking is already cancelled or completed
        """
        booking = await self.get_booking_by_id_or_raise(booking_id, user_id)
        self._check_cancellable(booking)

        try:
            remaining_seats = await self._cancel_in_transaction(booking)
            await self.db.commit()
        except (ConflictError, InsufficientSeatsError, SQLAlchemyError):
            await self.db.rollback()
            raise

        booking = await self.get_booking_by_id_or_raise(booking.id)
        metrics_collector.record_booking_cancelled()

        logger.info(
            "Booking cancelled successfully",
            extra={
                "booking_id": str(booking.id),
                "booking_reference": booking.booking_reference,
                "released_seats": len(booking.passengers),
                "remaining_seats": remaining_seats
            }
        )

        await self._notify_update(booking, "cancelled", remaining_seats)
        return booking

    async def update_booking(
        self,
        booking_id: str | UUID,
        request: UpdateBookingRequest,
        user_id: str | UUID | None = None,
    ) -> Booking:
        """
        Patch a booking's status and/or special requests.

        Only fields present in the request are applied. Moving to
        ``cancelled`` goes through the cancellation path so seats are
        released in the same transaction.

        Raises:
            NotFoundError: If booking not found (or not owned by ``user_id``)
            InvalidStatusTransition: If the status move is not allowed
            ConflictError: If cancelling an already cancelled booking
        """
        booking = await self.get_booking_by_id_or_raise(booking_id, user_id)

        requested_status = request.status
        if requested_status is not None and requested_status == booking.status:
            requested_status = None

        if requested_status is not None and not can_transition(booking.status, requested_status):
            logger.warning(
                "Booking update rejected - invalid status transition",
                extra={
                    "booking_id": str(booking.id),
                    "current_status": booking.status,
                    "requested_status": requested_status.value
                }
            )
            raise InvalidStatusTransition(str(booking.id), booking.status, requested_status.value)

        patch_requests = "special_requests" in request.model_fields_set
        if requested_status is None and not patch_requests:
            return booking

        remaining_seats = None
        try:
            if patch_requests:
                booking.special_requests = request.special_requests
                booking.updated_at = datetime.utcnow()

            if requested_status == BookingStatus.CANCELLED:
                remaining_seats = await self._cancel_in_transaction(booking)
            elif requested_status is not None:
                await self._move_status_in_transaction(booking, requested_status)

            await self.db.commit()
        except (ConflictError, InsufficientSeatsError, SQLAlchemyError):
            await self.db.rollback()
            raise

        booking = await self.get_booking_by_id_or_raise(booking.id)
        if requested_status == BookingStatus.CANCELLED:
            metrics_collector.record_booking_cancelled()

        logger.info(
            "Booking updated successfully",
            extra={
                "booking_id": str(booking.id),
                "status": booking.status,
                "special_requests_updated": patch_requests
            }
        )

        await self._notify_update(booking, "updated", remaining_seats)
        return booking

    async def get_booking_by_id(self, booking_id: UUID) -> Booking | None:
        """
        Get booking by ID, with passengers.

        Args:
            booking_id: Booking ID to search for

        Returns:
            Booking if found, None otherwise
        """
        stmt = (
            select(Booking)
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_booking_by_id_or_raise(
        self,
        booking_id: str | UUID,
        user_id: str | UUID | None = None,
    ) -> Booking:
        """
        Get booking by ID or raise NotFoundError.

        When ``user_id`` is given, bookings owned by anyone else are reported
        as not found.
        """
        booking_uuid = parse_uuid(booking_id, "booking")
        booking = await self.get_booking_by_id(booking_uuid)

        if booking and user_id is not None and booking.user_id != parse_uuid(user_id, "user"):
            logger.warning(
                "Booking requested by non-owner",
                extra={"booking_id": str(booking_id), "user_id": str(user_id)}
            )
            booking = None

        if not booking:
            raise NotFoundError(
                resource_type="booking",
                resource_id=str(booking_id)
            )
        return booking

    async def get_booking_by_reference(self, booking_reference: str) -> Booking | None:
        """Get booking by its reference code."""
        stmt = select(Booking).where(Booking.booking_reference == booking_reference)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_user_bookings(self, user_id: str | UUID) -> list[Booking]:
        """Return a user's bookings, newest first."""
        stmt = (
            select(Booking)
            .where(Booking.user_id == parse_uuid(user_id, "user"))
            .order_by(Booking.created_at.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def complete_departed_bookings(self, now: datetime | None = None) -> int:
        """
        Mark confirmed bookings whose flight has arrived as completed.

        Args:
            now: Reference time (naive UTC), defaults to the current time

        Returns:
            Number of bookings completed
        """
        now = now or datetime.utcnow()

        stmt = (
            select(Booking.id)
            .join(Flight, Booking.flight_id == Flight.id)
            .where(
                Booking.status == BookingStatus.CONFIRMED.value,
                Flight.arrival_time <= now
            )
        )
        result = await self.db.execute(stmt)
        booking_ids = list(result.scalars())

        if not booking_ids:
            return 0

        update_stmt = (
            update(Booking)
            .where(
                Booking.id.in_(booking_ids),
                Booking.status == BookingStatus.CONFIRMED.value
            )
            .values(status=BookingStatus.COMPLETED.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        update_result = await self.db.execute(update_stmt)
        await self.db.commit()

        completed = update_result.rowcount
        metrics_collector.record_bookings_completed(completed)

        logger.info(
            "Departed bookings completed",
            extra={"completed": completed, "reference_time": now.isoformat()}
        )

        for booking_id in booking_ids:
            self._safe_relay_call(
                self.relay.send_booking_update if self.relay else None,
                str(booking_id),
                {"event": "completed", "status": BookingStatus.COMPLETED.value}
            )

        return completed

    async def _owner_email(self, booking: Booking) -> str | None:
        result = await self.db.execute(select(User.email).where(User.id == booking.user_id))
        return result.scalar_one_or_none()

    async def _notify_update(self, booking: Booking, event: str, remaining_seats: int | None) -> None:
        booking_schema = to_booking_schema(booking)
        email = await self._owner_email(booking)
        if email:
            await self._send_email("update", email, booking_schema)
        self._publish(booking_schema, event, remaining_seats)

    async def _send_email(self, kind: str, to: str, booking: BookingSchema, e_ticket: str | None = None) -> None:
        """Send a booking email; failures are logged and never raised."""
        if self.email_service is None:
            return
        try:
            if kind == "confirmation":
                await self.email_service.send_booking_confirmation(to, booking, e_ticket)
            else:
                await self.email_service.send_booking_update(to, booking)
        except Exception as e:
            metrics_collector.record_email_failure(kind)
            logger.warning(
                "Booking email failed",
                extra={
                    "kind": kind,
                    "booking_id": booking.id,
                    "booking_reference": booking.booking_reference,
                    "error": str(e)
                },
                exc_info=True
            )

    def _publish(self, booking: BookingSchema, event: str, remaining_seats: int | None) -> None:
        """Push booking and seat events to SSE clients."""
        if self.relay is None:
            return

        self._safe_relay_call(
            self.relay.send_booking_update,
            booking.id,
            {
                "event": event,
                "status": booking.status.value,
                "bookingReference": booking.booking_reference
            }
        )
        if remaining_seats is not None:
            self._safe_relay_call(
                self.relay.send_flight_update,
                booking.flight_id,
                {"cabinClass": booking.cabin_class.value, "availableSeats": remaining_seats}
            )

    @staticmethod
    def _safe_relay_call(send, target_id: str, update: dict) -> None:
        if send is None:
            return
        try:
            send(target_id, update)
        except Exception as e:
            logger.warning(
                "Notification relay publish failed",
                extra={"target_id": target_id, "error": str(e)},
                exc_info=True
            )
