"""FastAPI dependencies for database, authentication, and shared services."""

from typing import Optional

import jwt
from fastapi import Depends, Header, Request
from jwt import PyJWTError

from .config import settings
from .exceptions import AuthenticationError


def _extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise AuthenticationError(detail="Authorization header missing")

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError(detail="Invalid authorization header format")

    if scheme.lower() != "bearer":
        raise AuthenticationError(detail="Invalid authentication scheme")

    return token


def decode_access_token(token: str) -> dict:
    """
    Verify an access token issued by the identity provider.

    Tokens are HS256 JWTs signed with the provider's JWT secret; expiry and
    audience are checked by PyJWT.

    Raises:
        AuthenticationError: If the token is invalid, expired or has no subject
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            audience=settings.jwt_audience,
        )
    except PyJWTError as e:
        raise AuthenticationError(detail=f"Token validation failed: {str(e)}")

    if not payload.get("sub"):
        raise AuthenticationError(detail="Invalid token payload")

    return payload


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> dict:
    """
    Authentication dependency that validates Bearer tokens.

    Args:
        authorization: Authorization header with Bearer token

    Returns:
        dict: User information from validated token

    Raises:
        AuthenticationError: If token is invalid or missing
    """
    token = _extract_bearer_token(authorization)
    payload = decode_access_token(token)

    app_metadata = payload.get("app_metadata") or {}
    return {
        "user_id": payload["sub"],
        "email": payload.get("email"),
        "roles": app_metadata.get("roles") or [payload.get("role", "authenticated")],
        "access_token": token,
    }


def get_notification_relay(request: Request):
    """Return the app's notification relay."""
    return request.app.state.notification_relay


def get_email_service(request: Request):
    """Return the app's email service."""
    return request.app.state.email_service


def get_identity_provider(request: Request):
    """Return the app's identity provider client."""
    return request.app.state.identity_provider


RequiredAuth = Depends(get_current_user)
