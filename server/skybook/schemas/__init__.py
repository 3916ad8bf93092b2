"""Pydantic schemas for request/response validation."""

from .auth import *  # noqa: F403
from .booking import *  # noqa: F403
from .common import *  # noqa: F403
from .flight import *  # noqa: F403
from .health import *  # noqa: F403
from .user import *  # noqa: F403
