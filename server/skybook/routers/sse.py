"""Server-sent events router."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse
from starlette.background import BackgroundTask

from ..core.dependencies import get_notification_relay
from ..services.notification_relay import SSE_SEPARATOR, NotificationRelay, keepalive_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sse", tags=["sse"])

RELAY_DEPENDENCY = Depends(get_notification_relay)


@router.get("/connect/{client_id}")
async def connect(
    client_id: str,
    relay: NotificationRelay = RELAY_DEPENDENCY
) -> EventSourceResponse:
    """
    Open an event stream for a client.

    The first event is a connection handshake; flight and booking updates
    follow as they happen.
    """
    events = relay.stream(client_id)
    logger.info("SSE stream requested", extra={"client_id": client_id})

    # The generator is closed once the response ends, however it ended
    return EventSourceResponse(
        events,
        ping=relay.heartbeat_seconds,
        ping_message_factory=keepalive_event,
        sep=SSE_SEPARATOR,
        background=BackgroundTask(events.aclose),
    )


@router.get("/status")
async def status(relay: NotificationRelay = RELAY_DEPENDENCY) -> JSONResponse:
    """Number of connected clients."""
    return JSONResponse(status_code=200, content={"connectedClients": relay.connection_count})
