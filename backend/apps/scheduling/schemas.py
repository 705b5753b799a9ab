"""
Scheduling API schemas - Pydantic models for request/response.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

# --- Request Schemas ---


class AssignProviderRequest(BaseModel):
    """Request to make a user a provider in a department."""

    organization_id: int
    department_id: int
    user_id: int
    bio: str = Field(default="", max_length=5000)
    specialization: str = Field(default="", max_length=255, examples=["Cardiology"])


class CreateEventRequest(BaseModel):
    """Request to publish a bookable slot."""

    provider_id: int
    title: str = Field(..., min_length=1, max_length=255, examples=["Consultation"])
    description: str | None = None
    start: datetime = Field(..., examples=["2026-11-02T09:00:00Z"])
    end: datetime = Field(..., examples=["2026-11-02T09:30:00Z"])
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)


class UpdateEventRequest(BaseModel):
    """
    Partial update of an unbooked event.

    Only fields present in the request body are changed.
    """

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)


class CreateBookingRequest(BaseModel):
    event_id: int


# --- Response Schemas ---


class UserSummary(BaseModel):
    id: int
    name: str
    email: str


class ProviderResponse(BaseModel):
    id: int
    user: UserSummary
    department_id: int
    department_name: str
    bio: str
    specialization: str
    created_at: datetime


class ProviderListResponse(BaseModel):
    providers: list[ProviderResponse]


class EventResponse(BaseModel):
    """A bookable slot."""

    id: int
    provider_id: int
    provider_name: str
    title: str
    description: str | None = None
    start: datetime
    end: datetime
    duration: int = Field(..., description="Length in minutes")
    price: Decimal | None = None
    is_booked: bool
    created_at: datetime


class EventListResponse(BaseModel):
    events: list[EventResponse]


class ProviderDetailResponse(ProviderResponse):
    organization_id: int
    organization_name: str
    upcoming_events: list[EventResponse]


class BookingResponse(BaseModel):
    id: int
    status: str
    client: UserSummary
    event: EventResponse
    created_at: datetime


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]
