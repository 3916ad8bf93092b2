"""Auth router for registration, login and sessions."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_user, get_identity_provider
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..schemas.auth import AuthResponse, LoginRequest, RefreshRequest, RegisterRequest
from ..schemas.common import MessageResponse
from ..services.auth_service import AuthService
from ..services.identity_provider import IdentityProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

DB_DEPENDENCY = Depends(get_db)
USER_DEPENDENCY = Depends(get_current_user)
PROVIDER_DEPENDENCY = Depends(get_identity_provider)


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    request: RegisterRequest,
    db: AsyncSession = DB_DEPENDENCY,
    provider: IdentityProvider = PROVIDER_DEPENDENCY
) -> JSONResponse:
    """Create an account and its profile."""
    try:
        response_data = await AuthService(db, provider).register(request)
        return JSONResponse(status_code=201, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in registration",
            extra={"email": request.email, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    db: AsyncSession = DB_DEPENDENCY,
    provider: IdentityProvider = PROVIDER_DEPENDENCY
) -> JSONResponse:
    """Log in with email and password."""
    try:
        response_data = await AuthService(db, provider).login(request)
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in login",
            extra={"email": request.email, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/refresh", response_model=AuthResponse)
async def refresh(
    request: RefreshRequest,
    db: AsyncSession = DB_DEPENDENCY,
    provider: IdentityProvider = PROVIDER_DEPENDENCY
) -> JSONResponse:
    """Exchange a refresh token for a new session."""
    try:
        response_data = await AuthService(db, provider).refresh(request.refresh_token)
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error in token refresh", extra={"error": str(e)}, exc_info=True)
        raise InternalServerError() from e


@router.post("/logout", response_model=MessageResponse)
async def logout(
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = USER_DEPENDENCY,
    provider: IdentityProvider = PROVIDER_DEPENDENCY
) -> JSONResponse:
    """End the caller's session."""
    try:
        await AuthService(db, provider).logout(current_user["access_token"])
        response_data = MessageResponse(message="Logged out")
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in logout",
            extra={"user_id": current_user["user_id"], "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e
