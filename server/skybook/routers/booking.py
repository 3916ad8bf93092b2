"""Booking router for booking operations."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_user, get_email_service, get_notification_relay
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..schemas.booking import Booking, BookingCreated, CreateBookingRequest, UpdateBookingRequest
from ..services.booking_service import BookingService, to_booking_schema
from ..services.email_service import EmailService
from ..services.notification_relay import NotificationRelay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])

# Define dependencies to avoid B008 linting errors
DB_DEPENDENCY = Depends(get_db)
USER_DEPENDENCY = Depends(get_current_user)
RELAY_DEPENDENCY = Depends(get_notification_relay)
EMAIL_DEPENDENCY = Depends(get_email_service)


def _booking_service(db: AsyncSession, relay: NotificationRelay, email_service: EmailService) -> BookingService:
    return BookingService(db, relay=relay, email_service=email_service)


@router.post("", response_model=BookingCreated, status_code=201)
async def create_booking(
    request: CreateBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = USER_DEPENDENCY,
    relay: NotificationRelay = RELAY_DEPENDENCY,
    email_service: EmailService = EMAIL_DEPENDENCY
) -> JSONResponse:
    """
    Book seats on a flight for one or more passengers.

    The booking starts out pending; the e-ticket is issued immediately.
    """
    booking_service = _booking_service(db, relay, email_service)

    try:
        booking, e_ticket = await booking_service.create_booking(
            current_user["user_id"],
            request,
            user_email=current_user.get("email")
        )
        response_data = BookingCreated(booking=to_booking_schema(booking), e_ticket=e_ticket)
        return JSONResponse(status_code=201, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking creation",
            extra={
                "user_id": current_user["user_id"],
                "flight_id": request.flight_id,
                "passengers": len(request.passengers),
                "error": str(e)
            },
            exc_info=True
        )
        raise InternalServerError() from e


@router.get("", response_model=list[Booking])
async def list_bookings(
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = USER_DEPENDENCY
) -> JSONResponse:
    """List the caller's bookings, newest first."""
    booking_service = BookingService(db)

    try:
        bookings = await booking_service.list_user_bookings(current_user["user_id"])
        return JSONResponse(
            status_code=200,
            content=[to_booking_schema(b).to_response() for b in bookings]
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error listing bookings",
            extra={"user_id": current_user["user_id"], "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.get("/{booking_id}", response_model=Booking)
async def get_booking(
    booking_id: str,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = USER_DEPENDENCY
) -> JSONResponse:
    """Get one of the caller's bookings."""
    booking_service = BookingService(db)

    try:
        booking = await booking_service.get_booking_by_id_or_raise(booking_id, current_user["user_id"])
        return JSONResponse(status_code=200, content=to_booking_schema(booking).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error getting booking",
            extra={"booking_id": booking_id, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.put("/{booking_id}", response_model=Booking)
async def update_booking(
    booking_id: str,
    request: UpdateBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = USER_DEPENDENCY,
    relay: NotificationRelay = RELAY_DEPENDENCY,
    email_service: EmailService = EMAIL_DEPENDENCY
) -> JSONResponse:
    """
    Update a booking's status or special requests.

    Setting the status to cancelled releases the booking's seats.
    """
    booking_service = _booking_service(db, relay, email_service)

    try:
        booking = await booking_service.update_booking(booking_id, request, current_user["user_id"])
        return JSONResponse(status_code=200, content=to_booking_schema(booking).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error updating booking",
            extra={"booking_id": booking_id, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.delete("/{booking_id}", response_model=Booking)
async def cancel_booking(
    booking_id: str,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = USER_DEPENDENCY,
    relay: NotificationRelay = RELAY_DEPENDENCY,
    email_service: EmailService = EMAIL_DEPENDENCY
) -> JSONResponse:
    """
    Cancel a booking.

    The booking is kept with status cancelled and its seats are returned.
    """
    booking_service = _booking_service(db, relay, email_service)

    try:
        booking = await booking_service.cancel_booking(booking_id, current_user["user_id"])
        return JSONResponse(status_code=200, content=to_booking_schema(booking).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error cancelling booking",
            extra={"booking_id": booking_id, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e
