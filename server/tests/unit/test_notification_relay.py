"""Unit tests for the SSE notification relay."""

import asyncio
import json

import pytest
from sse_starlette.sse import AppStatus

from skybook.routers import sse
from skybook.services.notification_relay import NotificationRelay, format_event, keepalive_event


def decode(event: dict) -> dict:
    return json.loads(event["data"])


def test_format_event():
    """Payloads become the data field of one event."""
    assert format_event({"type": "ping"}) == {"data": '{"type": "ping"}'}


def test_keepalive_event_is_a_comment_frame():
    assert keepalive_event().encode() == b": keepalive\n\n"

def test_register_queues_handshake():
    relay = NotificationRelay()

    connection = relay.register("client-1")

    assert relay.is_connected("client-1")
    assert relay.connection_count == 1
    assert connection.queue.get_nowait() == {"type": "connection", "message": "Connected to SSE"}


def test_register_replaces_existing_connection():
    """Reconnecting with the same id closes the old stream."""
    relay = NotificationRelay()
    first = relay.register("client-1")
    second = relay.register("client-1")

    assert relay.connection_count == 1
    assert not first.is_active
    assert second.is_active

    # Stale stream cleanup must not evict the new connection
    relay.unregister("client-1", first)
    assert relay.is_connected("client-1")


def test_send_to_client():
    relay = NotificationRelay()
    connection = relay.register("client-1")
    connection.queue.get_nowait()

    assert relay.send_to_client("client-1", {"type": "custom"}) is True
    assert relay.send_to_client("client-2", {"type": "custom"}) is False
    assert connection.queue.get_nowait() == {"type": "custom"}


def test_broadcast_reaches_every_client():
    relay = NotificationRelay()
    connections = [relay.register(f"client-{i}") for i in range(3)]

    delivered = relay.send_flight_update("flight-1", {"availableSeats": 3})

    assert delivered == 3
    for connection in connections:
        connection.queue.get_nowait()
        event = connection.queue.get_nowait()
        assert event["type"] == "flight_update"
        assert event["flightId"] == "flight-1"
        assert event["update"] == {"availableSeats": 3}
        assert event["timestamp"].endswith("Z")


def test_booking_update_with_no_clients():
    """Publishing with nobody connected is a no-op."""
    relay = NotificationRelay()

    assert relay.send_booking_update("booking-1", {"status": "confirmed"}) == 0


def test_shutdown_closes_connections():
    relay = NotificationRelay()
    connection = relay.register("client-1")

    relay.shutdown()

    assert relay.connection_count == 0
    assert not connection.is_active
    assert relay.send_to_client("client-1", {"type": "late"}) is False


@pytest.mark.asyncio
async def test_stream_registers_on_first_event_and_ends_on_close():
    relay = NotificationRelay()
    stream = relay.stream("client-1")

    # Nothing is registered until the stream is iterated
    assert not relay.is_connected("client-1")

    assert decode(await stream.__anext__())["type"] == "connection"
    assert relay.is_connected("client-1")

    relay.send_booking_update("booking-1", {"status": "cancelled"})
    relay.shutdown()
    events = [event async for event in stream]

    assert [decode(event)["bookingId"] for event in events] == ["booking-1"]
    assert relay.connection_count == 0


@pytest.mark.asyncio
async def test_stream_unregisters_when_closed():
    relay = NotificationRelay()
    stream = relay.stream("client-1")
    await stream.__anext__()

    await stream.aclose()

    assert not relay.is_connected("client-1")


def http_scope(client_id: str) -> dict:
    return {
        "type": "http",
        "http_version": "1.1",
        "method": "GET",
        "path": f"/sse/connect/{client_id}",
        "headers": [],
    }


async def wait_for_body(sent: list[dict], fragment: bytes, timeout: float = 2.0) -> None:
    async def poll():
        while not any(fragment in message.get("body", b"") for message in sent):
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout)


@pytest.fixture
def fresh_exit_event(monkeypatch):
    """sse_starlette keeps its shutdown event at module level; start each test without one."""
    monkeypatch.setattr(AppStatus, "should_exit_event", None, raising=False)


@pytest.mark.asyncio
async def test_client_gone_before_first_frame_is_not_left_registered(fresh_exit_event):
    relay = NotificationRelay(heartbeat_seconds=5)
    response = await sse.connect("client-1", relay=relay)
    sent: list[dict] = []

    async def receive():
        return {"type": "http.disconnect"}

    async def send(message):
        sent.append(message)

    await response(http_scope("client-1"), receive, send)

    assert not relay.is_connected("client-1")
    assert relay.connection_count == 0
    assert relay.send_to_client("client-1", {"type": "late"}) is False


@pytest.mark.asyncio
async def test_event_stream_frames_and_disconnect(fresh_exit_event):
    """Frames are data lines, idle streams get keepalives, disconnect unregisters."""
    relay = NotificationRelay(heartbeat_seconds=0.05)
    response = await sse.connect("client-1", relay=relay)
    disconnected = asyncio.Event()
    sent: list[dict] = []

    async def receive():
        await disconnected.wait()
        return {"type": "http.disconnect"}

    async def send(message):
        sent.append(message)

    task = asyncio.create_task(response(http_scope("client-1"), receive, send))

    await wait_for_body(sent, b'"type": "connection"')
    assert relay.is_connected("client-1")

    relay.send_flight_update("flight-1", {"availableSeats": 3})
    await wait_for_body(sent, b'"flightId": "flight-1"')
    await wait_for_body(sent, b": keepalive\n\n")

    start = next(message for message in sent if message["type"] == "http.response.start")
    headers = dict(start["headers"])
    assert headers[b"content-type"].startswith(b"text/event-stream")

    frames = [message["body"] for message in sent if message.get("body", b"").startswith(b"data: ")]
    assert all(frame.endswith(b"\n\n") for frame in frames)

    disconnected.set()
    await asyncio.wait_for(task, 2.0)

    assert not relay.is_connected("client-1")
