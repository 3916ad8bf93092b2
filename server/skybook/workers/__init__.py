"""Background workers."""

from .base import BaseWorker
from .booking_completion_worker import BookingCompletionWorker
from .manager import WorkerManager

__all__ = ["BaseWorker", "BookingCompletionWorker", "WorkerManager"]
