"""User router for profile management."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_user, get_identity_provider
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..schemas.booking import Booking
from ..schemas.common import MessageResponse
from ..schemas.user import ChangePasswordRequest, UpdateProfileRequest, UserProfile
from ..services.auth_service import AuthService
from ..services.booking_service import BookingService, to_booking_schema
from ..services.identity_provider import IdentityProvider
from ..services.user_service import UserService, to_profile_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

DB_DEPENDENCY = Depends(get_db)
USER_DEPENDENCY = Depends(get_current_user)
PROVIDER_DEPENDENCY = Depends(get_identity_provider)


@router.get("/profile", response_model=UserProfile)
async def get_profile(
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = USER_DEPENDENCY
) -> JSONResponse:
    """Get the caller's profile."""
    try:
        user = await UserService(db).get_profile(current_user["user_id"])
        return JSONResponse(status_code=200, content=to_profile_schema(user).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error getting profile",
            extra={"user_id": current_user["user_id"], "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.put("/profile", response_model=UserProfile)
async def update_profile(
    request: UpdateProfileRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = USER_DEPENDENCY
) -> JSONResponse:
    """Update the supplied profile fields."""
    try:
        user = await UserService(db).update_profile(current_user["user_id"], request)
        return JSONResponse(status_code=200, content=to_profile_schema(user).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error updating profile",
            extra={"user_id": current_user["user_id"], "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.get("/bookings", response_model=list[Booking])
async def booking_history(
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = USER_DEPENDENCY
) -> JSONResponse:
    """The caller's booking history, newest first."""
    try:
        bookings = await BookingService(db).list_user_bookings(current_user["user_id"])
        return JSONResponse(
            status_code=200,
            content=[to_booking_schema(b).to_response() for b in bookings]
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error getting booking history",
            extra={"user_id": current_user["user_id"], "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = USER_DEPENDENCY,
    provider: IdentityProvider = PROVIDER_DEPENDENCY
) -> JSONResponse:
    """Change the caller's password."""
    try:
        email = current_user.get("email")
        if not email:
            email = (await UserService(db).get_profile(current_user["user_id"])).email

        await AuthService(db, provider).change_password(
            current_user["user_id"],
            email,
            request.current_password,
            request.new_password
        )
        response_data = MessageResponse(message="Password updated")
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error changing password",
            extra={"user_id": current_user["user_id"], "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e
