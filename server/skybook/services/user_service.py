"""User profile service."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError
from ..models.user import User
from ..schemas.user import UpdateProfileRequest, UserProfile
from .flight_service import parse_uuid

logger = logging.getLogger(__name__)


def to_profile_schema(user: User) -> UserProfile:
    """Convert user model to schema."""
    return UserProfile(
        id=str(user.id),
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        address=user.address,
        city=user.city,
        country=user.country,
        postal_code=user.postal_code,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class UserService:
    """Service for user profile operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_profile(self, user_id: str | UUID) -> User:
        """
        Get a user's profile.

        Raises:
            NotFoundError: If no profile exists for the user
        """
        user_uuid = parse_uuid(user_id, "user")
        result = await self.db.execute(select(User).where(User.id == user_uuid))
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundError(resource_type="user", resource_id=str(user_id))
        return user

    async def update_profile(self, user_id: str | UUID, request: UpdateProfileRequest) -> User:
        """Apply the supplied profile fields and stamp updated_at."""
        user = await self.get_profile(user_id)

        changes = request.model_dump(exclude_unset=True)
        # Name columns are not nullable
        for name in ("first_name", "last_name"):
            if changes.get(name) is None:
                changes.pop(name, None)

        if not changes:
            return user

        for name, value in changes.items():
            setattr(user, name, value)
        user.updated_at = datetime.utcnow()

        await self.db.commit()

        logger.info(
            "User profile updated",
            extra={"user_id": str(user.id), "fields": sorted(changes)}
        )
        return user
