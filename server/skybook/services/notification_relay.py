"""
Notification relay

Keeps one in-memory queue per connected SSE client and fans out flight and
booking events to them. The registry is process-local.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any

from sse_starlette.sse import ServerSentEvent

from ..core.observability import metrics_collector

logger = logging.getLogger(__name__)

SSE_SEPARATOR = "\n"


def format_event(payload: dict[str, Any]) -> dict[str, str]:
    """Encode a payload as the data field of one SSE event."""
    return {"data": json.dumps(payload, default=str)}


def keepalive_event() -> ServerSentEvent:
    """Comment frame sent to idle streams."""
    return ServerSentEvent(comment="keepalive", sep=SSE_SEPARATOR)

class SSEConnection:
    """One client's connection: an unbounded queue closed by a None sentinel."""

    def __init__(self, client_id: str):
        self.client_id = client_id
        self.queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()
        self.connected_at = datetime.utcnow()
        self.is_active = True

    def push(self, payload: dict[str, Any]) -> bool:
        if not self.is_active:
            return False
        self.queue.put_nowait(payload)
        return True

    def close(self) -> None:
        if self.is_active:
            self.is_active = False
            self.queue.put_nowait(None)


class NotificationRelay:
    """Registry of SSE connections with targeted and broadcast delivery."""

    def __init__(self, heartbeat_seconds: float = 15.0):
        self.heartbeat_seconds = heartbeat_seconds
        self._connections: dict[str, SSEConnection] = {}

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def is_connected(self, client_id: str) -> bool:
        return client_id in self._connections

    def register(self, client_id: str) -> SSEConnection:
        """
        Register a client and queue its handshake event.

        A client id that is already connected has its previous connection
        closed and replaced.
        """
        previous = self._connections.pop(client_id, None)
        if previous is not None:
            previous.close()
            logger.info("SSE connection replaced", extra={"client_id": client_id})

        connection = SSEConnection(client_id)
        connection.push({"type": "connection", "message": "Connected to SSE"})
        self._connections[client_id] = connection
        metrics_collector.set_sse_connections(self.connection_count)

        logger.info(
            "SSE connection added",
            extra={"client_id": client_id, "total_connections": self.connection_count}
        )
        return connection

    def unregister(self, client_id: str, connection: SSEConnection | None = None) -> None:
        """
        Remove a client's connection.

        When ``connection`` is given, only that exact connection is removed so
        a stale stream cannot evict the client's newer connection.
        """
        current = self._connections.get(client_id)
        if current is None or (connection is not None and current is not connection):
            return

        del self._connections[client_id]
        current.close()
        metrics_collector.set_sse_connections(self.connection_count)

        logger.info(
            "SSE connection removed",
            extra={"client_id": client_id, "remaining_connections": self.connection_count}
        )

    def shutdown(self) -> None:
        """Close every connection."""
        connections = list(self._connections.values())
        self._connections.clear()
        for connection in connections:
            connection.close()
        metrics_collector.set_sse_connections(0)

        logger.info("Notification relay shut down", extra={"closed_connections": len(connections)})

    def send_to_client(self, client_id: str, payload: dict[str, Any]) -> bool:
        """Queue a payload for one client. Returns False if it is not connected."""
        connection = self._connections.get(client_id)
        if connection is None:
            return False
        return connection.push(payload)

    def broadcast(self, payload: dict[str, Any]) -> int:
        """Queue a payload for every client. Returns the number reached."""
        delivered = sum(1 for connection in list(self._connections.values()) if connection.push(payload))
        logger.debug(
            "SSE broadcast",
            extra={"event_type": payload.get("type"), "delivered": delivered}
        )
        return delivered

    def send_flight_update(self, flight_id: str, update: dict[str, Any]) -> int:
        return self.broadcast({
            "type": "flight_update",
            "flightId": flight_id,
            "update": update,
            "timestamp": datetime.utcnow().isoformat() + "Z",
        })

    def send_booking_update(self, booking_id: str, update: dict[str, Any]) -> int:
        return self.broadcast({
            "type": "booking_update",
            "bookingId": booking_id,
            "update": update,
            "timestamp": datetime.utcnow().isoformat() + "Z",
        })

    async def stream(self, client_id: str) -> AsyncIterator[dict[str, str]]:
        """
        Register a client and yield its events until the connection closes.

        Registration happens on the first iteration, so a client that goes
        away before the stream starts is never registered. The connection is
        unregistered on exit, including when the generator is cancelled or
        closed after a disconnect.
        """
        connection = self.register(client_id)
        try:
            while True:
                payload = await connection.queue.get()
                if payload is None:
                    break
                yield format_event(payload)
        finally:
            self.unregister(client_id, connection)
