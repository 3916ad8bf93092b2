"""User profile Pydantic schemas."""

from datetime import datetime

from pydantic import Field

from .common import ApiModel


class UserProfile(ApiModel):
    """User profile response schema."""

    id: str = Field(..., description="User ID")
    email: str = Field(..., description="Login email")
    first_name: str = Field(..., description="Given name")
    last_name: str = Field(..., description="Family name")
    phone: str | None = Field(None, description="Contact phone number")
    address: str | None = Field(None, description="Street address")
    city: str | None = Field(None, description="City")
    country: str | None = Field(None, description="Country")
    postal_code: str | None = Field(None, description="Postal code")
    created_at: datetime = Field(..., description="Creation time (UTC)")
    updated_at: datetime = Field(..., description="Last update time (UTC)")


class UpdateProfileRequest(ApiModel):
    """Partial profile update; omitted fields are left untouched."""

    first_name: str | None = Field(None, min_length=1, max_length=128)
    last_name: str | None = Field(None, min_length=1, max_length=128)
    phone: str | None = Field(None, max_length=32)
    address: str | None = Field(None, max_length=255)
    city: str | None = Field(None, max_length=128)
    country: str | None = Field(None, max_length=128)
    postal_code: str | None = Field(None, max_length=16)


class ChangePasswordRequest(ApiModel):
    """Request schema for changing the account password."""

    current_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., min_length=8, max_length=128, description="Replacement password")
