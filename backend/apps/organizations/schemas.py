"""
Organizations API schemas - Pydantic models for request/response.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

# --- Request Schemas ---


class CreateOrganizationRequest(BaseModel):
    """Admin request to create an organization for an owner."""

    name: str = Field(..., min_length=1, max_length=255, examples=["City Clinic"])
    slug: str = Field(
        ...,
        min_length=1,
        max_length=255,
        pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$",
        description="URL-safe identifier (lowercase, hyphens allowed)",
        examples=["city-clinic"],
    )
    owner_id: int = Field(..., description="User who will own the organization")
    logo: str | None = Field(default=None, max_length=500)


class ToggleOrganizationRequest(BaseModel):
    enabled: bool


class CreateDepartmentRequest(BaseModel):
    organization_id: int
    name: str = Field(..., min_length=1, max_length=255, examples=["Cardiology"])


# --- Response Schemas ---


class OrganizationResponse(BaseModel):
    id: int
    name: str
    slug: str
    logo: str
    enabled: bool
    metadata: dict[str, Any]
    created_at: datetime


class OrganizationSummary(OrganizationResponse):
    """Admin listing row."""

    member_count: int
    department_count: int


class OrganizationListResponse(BaseModel):
    organizations: list[OrganizationSummary]


class OrganizationActionResponse(BaseModel):
    organization: OrganizationResponse
    message: str


class PublicOrganization(BaseModel):
    id: int
    name: str
    slug: str
    logo: str


class PublicOrganizationListResponse(BaseModel):
    organizations: list[PublicOrganization]


class OverviewResponse(BaseModel):
    """Platform-wide counts."""

    organizations: int
    enabled_organizations: int
    users: int
    members: int
    departments: int
    providers: int
    events: int
    bookings: int


class DepartmentProvider(BaseModel):
    id: int
    user_id: int
    name: str
    email: str
    specialization: str


class DepartmentResponse(BaseModel):
    id: int
    organization_id: int
    name: str
    providers: list[DepartmentProvider] = []
    created_at: datetime


class DepartmentListResponse(BaseModel):
    departments: list[DepartmentResponse]


class SubscriptionStatusResponse(BaseModel):
    enabled: bool
    subscription_active: bool
    metadata: dict[str, Any]
    needs_subscription: bool
