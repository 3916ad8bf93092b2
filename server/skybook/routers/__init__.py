"""FastAPI routers package."""

from .airports import router as airports_router
from .auth import router as auth_router
from .booking import router as booking_router
from .flights import router as flights_router
from .health import router as health_router
from .metrics import router as metrics_router
from .sse import router as sse_router
from .users import router as users_router

__all__ = [
    "airports_router",
    "auth_router",
    "booking_router",
    "flights_router",
    "health_router",
    "metrics_router",
    "sse_router",
    "users_router",
]
