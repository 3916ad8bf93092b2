"""Airport router."""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..schemas.flight import Airport, AirportSearchResponse
from ..services.airport_service import AirportService, to_airport_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/airports", tags=["airports"])

DB_DEPENDENCY = Depends(get_db)


@router.get("", response_model=list[Airport])
async def list_airports(db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """List all airports."""
    try:
        airports = await AirportService(db).list_airports()
        return JSONResponse(
            status_code=200,
            content=[to_airport_schema(a).to_response() for a in airports]
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error listing airports", extra={"error": str(e)}, exc_info=True)
        raise InternalServerError() from e


@router.get("/search", response_model=AirportSearchResponse)
async def search_airports(
    q: str = Query("", max_length=100, description="Substring of code, name or city"),
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Search airports by code, name or city."""
    try:
        airports = await AirportService(db).search_airports(q)
        response_data = AirportSearchResponse(
            data=[to_airport_schema(a) for a in airports],
            success=True
        )
        return JSONResponse(status_code=200, content=response_data.to_response())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error searching airports",
            extra={"query": q, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e
