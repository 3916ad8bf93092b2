"""Background worker that completes bookings once their flight has arrived."""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..services.booking_service import BookingService
from ..services.notification_relay import NotificationRelay
from .base import BaseWorker

logger = logging.getLogger(__name__)


class BookingCompletionWorker(BaseWorker):
    """
    Moves confirmed bookings to completed after their flight arrives.

    Completion is the only transition nobody requests over the API, so it
    is driven by the clock here.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        relay: NotificationRelay | None = None,
        interval_seconds: float = 300,
    ):
        super().__init__(name="BookingCompletion", interval_seconds=interval_seconds)
        self.session_factory = session_factory
        self.relay = relay

    async def process(self) -> None:
        """Complete every confirmed booking whose flight has arrived."""
        async with self.session_factory() as db:
            now = datetime.utcnow()
            booking_service = BookingService(db, relay=self.relay)

            try:
                completed = await booking_service.complete_departed_bookings(now)
            except Exception:
                await db.rollback()
                raise

            if completed:
                logger.info(
                    "Bookings completed",
                    extra={"completed": completed, "timestamp": now.isoformat(), "worker": self.name}
                )
