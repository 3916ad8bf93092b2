"""Flight router for search and flight lookups."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..schemas.flight import FlightDetail, FlightSearchRequest, FlightSearchResponse
from ..services.flight_service import FlightService, to_flight_detail

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/flights", tags=["flights"])

DB_DEPENDENCY = Depends(get_db)


@router.post("/search", response_model=FlightSearchResponse)
async def search_flights(
    request: FlightSearchRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """
    Search flights by route, calendar day, cabin and party size.

    Only flights with enough seats left in the requested cabin are returned.
    """
    flight_service = FlightService(db)

    try:
        response_data = await flight_service.search_flights(request)
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in flight search",
            extra={
                "origin": request.origin,
                "destination": request.destination,
                "error": str(e)
            },
            exc_info=True
        )
        raise InternalServerError() from e


@router.get("/all", response_model=list[FlightDetail])
async def list_flights(db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """List every flight with per-cabin fares."""
    flight_service = FlightService(db)

    try:
        flights = await flight_service.list_flights()
        return JSONResponse(
            status_code=200,
            content=[to_flight_detail(f).to_response() for f in flights]
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error listing flights",
            extra={"error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.get("/{flight_id}", response_model=FlightDetail)
async def get_flight(
    flight_id: str,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Get a flight with per-cabin fares."""
    flight_service = FlightService(db)

    try:
        flight = await flight_service.get_flight_by_id_or_raise(flight_id)
        return JSONResponse(status_code=200, content=to_flight_detail(flight).to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error getting flight",
            extra={"flight_id": flight_id, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e
