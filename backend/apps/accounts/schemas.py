"""
Accounts API schemas - Pydantic models for request/response.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from apps.accounts.models import User

# --- Request Schemas ---


class CreateUserRequest(BaseModel):
    """Request to create a platform user."""

    name: str = Field(..., min_length=1, max_length=255, examples=["Dr. Jane Smith"])
    email: EmailStr = Field(..., examples=["jane@clinic.example"])
    role: User.Role = Field(default=User.Role.CLIENT, description="Global role")


class GenerateApiKeyRequest(BaseModel):
    """Request to issue an API key for a user."""

    user_id: int = Field(..., description="User the key authenticates as")
    name: str = Field(..., min_length=1, max_length=255, examples=["Front desk tablet"])
    organization_id: int | None = Field(
        default=None,
        description="Optional organization the key is labelled with",
    )
    expires_in_days: int | None = Field(
        default=None,
        ge=1,
        description="Lifetime in days; omit for a non-expiring key",
    )


# --- Response Schemas ---


class UserResponse(BaseModel):
    """Platform user."""

    id: int
    email: str
    name: str
    role: str
    is_active: bool
    created_at: datetime


class UserListResponse(BaseModel):
    users: list[UserResponse]


class ApiKeyResponse(BaseModel):
    """API key metadata. Never includes the raw key."""

    id: int
    name: str
    prefix: str
    user_id: int
    user_email: str
    organization_id: int | None = None
    expires_at: datetime | None = None
    last_used_at: datetime | None = None
    created_at: datetime


class ApiKeyWithSecretResponse(ApiKeyResponse):
    """Returned once, on creation."""

    key: str = Field(..., description="Raw bearer key. Store it now; it cannot be shown again.")


class ApiKeyListResponse(BaseModel):
    api_keys: list[ApiKeyResponse]
