"""Authentication-related Pydantic schemas."""

from pydantic import EmailStr, Field

from .common import ApiModel


class RegisterRequest(ApiModel):
    """Request schema for account registration."""

    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., min_length=8, max_length=128, description="Account password")
    first_name: str = Field(..., min_length=1, max_length=128, description="Given name")
    last_name: str = Field(..., min_length=1, max_length=128, description="Family name")
    phone: str | None = Field(None, max_length=32, description="Contact phone number")


class LoginRequest(ApiModel):
    """Request schema for password login."""

    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., min_length=1, description="Account password")


class RefreshRequest(ApiModel):
    """Request schema for exchanging a refresh token."""

    refresh_token: str = Field(..., min_length=1, description="Refresh token from a prior login")


class AuthUser(ApiModel):
    """Authenticated user summary."""

    id: str = Field(..., description="User ID")
    email: str = Field(..., description="Login email")
    first_name: str = Field("", description="Given name")
    last_name: str = Field("", description="Family name")


class AuthResponse(ApiModel):
    """Response schema for register, login and refresh."""

    access_token: str | None = Field(None, description="Bearer access token, absent until email is confirmed")
    refresh_token: str | None = Field(None, description="Refresh token")
    expires_in: int | None = Field(None, description="Access token lifetime in seconds")
    user: AuthUser = Field(..., description="Authenticated user")
