"""
Identity provider - external account store behind the auth endpoints.

Passwords, sessions and token issuance live in a GoTrue-compatible auth
service (Supabase Auth). The API only mirrors a profile row per user.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from ..core.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class IdentityUser:
    """User record as returned by the provider"""
    id: str
    email: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class IdentitySession:
    """Sign-in result; tokens are absent when sign-up awaits email confirmation"""
    user: IdentityUser
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None


class IdentityProviderError(Exception):
    """Provider call failed"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class InvalidCredentialsError(IdentityProviderError):
    """Email/password, refresh token or access token rejected"""


class UserAlreadyExistsError(IdentityProviderError):
    """Sign-up for an email that is already registered"""


class IdentityProvider(ABC):
    """Abstract interface of the external identity provider."""

    name: str = "base"

    @abstractmethod
    async def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> IdentitySession:
        """Create an account"""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> IdentitySession:
        """Password grant"""

    @abstractmethod
    async def refresh(self, refresh_token: str) -> IdentitySession:
        """Refresh-token grant"""

    @abstractmethod
    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind an access token"""

    @abstractmethod
    async def update_user(self, access_token: str, attributes: dict[str, Any]) -> IdentityUser:
        """Update the signed-in user's attributes (e.g. password)"""

    async def aclose(self) -> None:
        """Release any held resources"""


class GoTrueIdentityProvider(IdentityProvider):
    """
    Identity provider speaking the GoTrue REST API.

    https://github.com/supabase/auth
    """

    name = "gotrue"

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self._client = client or httpx.AsyncClient(
            base_url=settings.auth_provider_url.rstrip("/"),
            timeout=settings.auth_provider_timeout_seconds,
            headers={"apikey": settings.auth_provider_api_key},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        return (
            body.get("msg")
            or body.get("error_description")
            or body.get("message")
            or body.get("error")
            or f"HTTP {response.status_code}"
        )

    @staticmethod
    def _parse_user(data: dict[str, Any]) -> IdentityUser:
        return IdentityUser(
            id=data["id"],
            email=data.get("email", ""),
            metadata=data.get("user_metadata") or {},
        )

    def _parse_session(self, data: dict[str, Any]) -> IdentitySession:
        # Sign-up without auto-confirm returns the bare user object
        user_data = data.get("user") or data
        return IdentitySession(
            user=self._parse_user(user_data),
            access_token=data.get("access_token"),
            refresh_token=data.get("refresh_token"),
            expires_in=data.get("expires_in"),
        )

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(
                "Identity provider unreachable",
                extra={"path": path, "error": str(e)}
            )
            raise IdentityProviderError(f"Identity provider request failed: {e}") from e

        if response.is_success:
            return response

        message = self._error_message(response)
        logger.warning(
            "Identity provider rejected request",
            extra={"path": path, "status_code": response.status_code, "provider_message": message}
        )

        if "already registered" in message.lower() or "already exists" in message.lower():
            raise UserAlreadyExistsError(message, response.status_code)
        if response.status_code in (400, 401, 403):
            raise InvalidCredentialsError(message, response.status_code)
        raise IdentityProviderError(message, response.status_code)

    @staticmethod
    def _bearer(access_token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    async def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> IdentitySession:
        response = await self._request(
            "POST",
            "/signup",
            json={"email": email, "password": password, "data": metadata},
        )
        return self._parse_session(response.json())

    async def sign_in(self, email: str, password: str) -> IdentitySession:
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return self._parse_session(response.json())

    async def refresh(self, refresh_token: str) -> IdentitySession:
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        return self._parse_session(response.json())

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", "/logout", headers=self._bearer(access_token))

    async def update_user(self, access_token: str, attributes: dict[str, Any]) -> IdentityUser:
        response = await self._request(
            "PUT",
            "/user",
            headers=self._bearer(access_token),
            json=attributes,
        )
        return self._parse_user(response.json())
