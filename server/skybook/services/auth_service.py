"""Auth service: account lifecycle on top of the identity provider."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import AuthenticationError, ConflictError
from ..models.user import User
from ..schemas.auth import AuthResponse, AuthUser, LoginRequest, RegisterRequest
from .identity_provider import (
    IdentityProvider,
    IdentitySession,
    InvalidCredentialsError,
    UserAlreadyExistsError,
)

logger = logging.getLogger(__name__)


def _to_auth_response(session: IdentitySession, profile: User | None) -> AuthResponse:
    return AuthResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
        user=AuthUser(
            id=session.user.id,
            email=profile.email if profile else session.user.email,
            first_name=profile.first_name if profile else session.user.metadata.get("first_name", ""),
            last_name=profile.last_name if profile else session.user.metadata.get("last_name", ""),
        ),
    )


class AuthService:
    """Service for registration, login and session management."""

    def __init__(self, db: AsyncSession, provider: IdentityProvider):
        self.db = db
        self.provider = provider

    async def get_profile_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_profile_by_id(self, user_id: UUID) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def _ensure_profile(self, session: IdentitySession, **fields) -> User:
        """Return the mirrored profile row, creating it from provider data if missing."""
        user_id = UUID(session.user.id)
        profile = await self.get_profile_by_id(user_id)
        if profile:
            return profile

        metadata = session.user.metadata
        profile = User(
            id=user_id,
            email=session.user.email.lower(),
            first_name=fields.get("first_name") or metadata.get("first_name", ""),
            last_name=fields.get("last_name") or metadata.get("last_name", ""),
            phone=fields.get("phone") or metadata.get("phone"),
        )
        self.db.add(profile)
        await self.db.commit()

        logger.info(
            "User profile created",
            extra={"user_id": str(user_id), "email": profile.email}
        )
        return profile

    async def register(self, request: RegisterRequest) -> AuthResponse:
        """
        Create a provider account and its local profile.

        Raises:
            ConflictError: If the email is already registered
        """
        email = request.email.lower()

        if await self.get_profile_by_email(email):
            logger.warning("Registration rejected - email exists", extra={"email": email})
            raise ConflictError(detail="User already exists")

        try:
            session = await self.provider.sign_up(
                email,
                request.password,
                {
                    "first_name": request.first_name,
                    "last_name": request.last_name,
                    "phone": request.phone,
                },
            )
        except UserAlreadyExistsError:
            logger.warning("Registration rejected by identity provider", extra={"email": email})
            raise ConflictError(detail="User already exists")

        profile = await self._ensure_profile(
            session,
            first_name=request.first_name,
            last_name=request.last_name,
            phone=request.phone,
        )

        logger.info(
            "User registered",
            extra={"user_id": session.user.id, "session_issued": session.access_token is not None}
        )
        return _to_auth_response(session, profile)

    async def login(self, request: LoginRequest) -> AuthResponse:
        """
        Password login.

        Raises:
            AuthenticationError: If the credentials are rejected
        """
        try:
            session = await self.provider.sign_in(request.email.lower(), request.password)
        except InvalidCredentialsError:
            logger.warning("Login failed", extra={"email": request.email.lower()})
            raise AuthenticationError(detail="Invalid credentials")

        profile = await self._ensure_profile(session)

        logger.info("User logged in", extra={"user_id": session.user.id})
        return _to_auth_response(session, profile)

    async def refresh(self, refresh_token: str) -> AuthResponse:
        """
        Exchange a refresh token for a new session.

        Raises:
            AuthenticationError: If the refresh token is rejected
        """
        try:
            session = await self.provider.refresh(refresh_token)
        except InvalidCredentialsError:
            raise AuthenticationError(detail="Invalid or expired refresh token")

        profile = await self.get_profile_by_id(UUID(session.user.id))
        return _to_auth_response(session, profile)

    async def logout(self, access_token: str) -> None:
        """Revoke the caller's session at the provider."""
        try:
            await self.provider.sign_out(access_token)
        except InvalidCredentialsError:
            # Session already gone at the provider
            logger.info("Logout for an already invalid session")

    async def change_password(
        self,
        user_id: str | UUID,
        email: str,
        current_password: str,
        new_password: str,
    ) -> None:
        """
        Change the account password after re-checking the current one.

        Raises:
            AuthenticationError: If the current password is wrong
        """
        try:
            session = await self.provider.sign_in(email.lower(), current_password)
        except InvalidCredentialsError:
            logger.warning("Password change rejected - wrong current password", extra={"email": email.lower()})
            raise AuthenticationError(detail="Current password is incorrect")

        await self.provider.update_user(session.access_token, {"password": new_password})

        profile = await self.get_profile_by_id(UUID(str(user_id)))
        if profile:
            profile.updated_at = datetime.utcnow()
            await self.db.commit()

        logger.info("Password changed", extra={"user_id": str(user_id)})
