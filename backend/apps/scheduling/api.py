"""
Scheduling API endpoints.

- Providers: owners assign users to departments
- Events: providers publish availability, anyone authenticated browses it
- Bookings: clients reserve and cancel events
"""

from ninja import Router

from apps.core.schemas import ErrorResponse, SuccessResponse
from apps.core.security import ApiKeyAuth
from apps.core.types import AuthenticatedHttpRequest
from apps.scheduling.availability import (
    create_event,
    delete_event,
    get_event,
    list_events,
    update_event,
)
from apps.scheduling.booking import cancel_booking, create_booking, get_booking, list_bookings
from apps.scheduling.models import Booking, Event, Provider
from apps.scheduling.providers import (
    assign_provider,
    get_provider_with_upcoming_events,
    list_providers,
    remove_provider,
)
from apps.scheduling.schemas import (
    AssignProviderRequest,
    BookingListResponse,
    BookingResponse,
    CreateBookingRequest,
    CreateEventRequest,
    EventListResponse,
    EventResponse,
    ProviderDetailResponse,
    ProviderListResponse,
    ProviderResponse,
    UpdateEventRequest,
    UserSummary,
)

providers_router = Router(tags=["providers"])
events_router = Router(tags=["events"])
bookings_router = Router(tags=["bookings"])
bearer_auth = ApiKeyAuth()


# =============================================================================
# Helpers
# =============================================================================


def _user_summary(user) -> UserSummary:
    return UserSummary(id=user.id, name=user.name, email=user.email)


def _provider_to_response(provider: Provider) -> ProviderResponse:
    return ProviderResponse(
        id=provider.id,
        user=_user_summary(provider.user),
        department_id=provider.department_id,
        department_name=provider.department.name,
        bio=provider.bio,
        specialization=provider.specialization,
        created_at=provider.created_at,
    )


def _event_to_response(event: Event) -> EventResponse:
    provider_user = event.provider.user
    return EventResponse(
        id=event.id,
        provider_id=event.provider_id,
        provider_name=provider_user.name or provider_user.email,
        title=event.title,
        description=event.description,
        start=event.start,
        end=event.end,
        duration=event.duration,
        price=event.price,
        is_booked=event.is_booked,
        created_at=event.created_at,
    )


def _booking_to_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        status=booking.status,
        client=_user_summary(booking.client),
        event=_event_to_response(booking.event),
        created_at=booking.created_at,
    )


# =============================================================================
# Providers
# =============================================================================


@providers_router.post(
    "",
    response={
        201: ProviderResponse,
        400: ErrorResponse,
        403: ErrorResponse,
        404: ErrorResponse,
        409: ErrorResponse,
    },
    auth=bearer_auth,
    operation_id="assignProvider",
    summary="Assign provider",
)
def assign_provider_endpoint(
    request: AuthenticatedHttpRequest, payload: AssignProviderRequest
) -> tuple[int, ProviderResponse]:
    """
    Make a user a provider in a department.

    Requires OWNER membership of the organization, which must be enabled.
    """
    user = request.auth.require_user()
    provider = assign_provider(
        user,
        organization_id=payload.organization_id,
        department_id=payload.department_id,
        user_id=payload.user_id,
        bio=payload.bio,
        specialization=payload.specialization,
    )
    return 201, _provider_to_response(provider)


@providers_router.get(
    "",
    response={200: ProviderListResponse},
    auth=bearer_auth,
    operation_id="listProviders",
    summary="List providers",
)
def list_providers_endpoint(
    request: AuthenticatedHttpRequest, organization_id: int, department_id: int | None = None
) -> ProviderListResponse:
    return ProviderListResponse(
        providers=[
            _provider_to_response(provider)
            for provider in list_providers(organization_id, department_id)
        ]
    )


@providers_router.get(
    "/{provider_id}",
    response={200: ProviderDetailResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="getProvider",
    summary="Get provider",
)
def get_provider_endpoint(
    request: AuthenticatedHttpRequest, provider_id: int
) -> ProviderDetailResponse:
    """Provider profile with upcoming events."""
    provider = get_provider_with_upcoming_events(provider_id)
    organization = provider.department.organization
    return ProviderDetailResponse(
        **_provider_to_response(provider).model_dump(),
        organization_id=organization.id,
        organization_name=organization.name,
        upcoming_events=[_event_to_response(event) for event in provider.upcoming_events],
    )


@providers_router.delete(
    "/{provider_id}",
    response={200: SuccessResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="removeProvider",
    summary="Remove provider",
)
def remove_provider_endpoint(
    request: AuthenticatedHttpRequest, provider_id: int
) -> SuccessResponse:
    user = request.auth.require_user()
    remove_provider(user, provider_id)
    return SuccessResponse()


# =============================================================================
# Events
# =============================================================================


@events_router.post(
    "",
    response={
        201: EventResponse,
        400: ErrorResponse,
        403: ErrorResponse,
        404: ErrorResponse,
    },
    auth=bearer_auth,
    operation_id="createEvent",
    summary="Create event",
)
def create_event_endpoint(
    request: AuthenticatedHttpRequest, payload: CreateEventRequest
) -> tuple[int, EventResponse]:
    """
    Publish a bookable slot.

    The caller must be the provider. The slot must be in the future and
    inside the daily availability window.
    """
    user = request.auth.require_user()
    event = create_event(
        user,
        provider_id=payload.provider_id,
        title=payload.title,
        start=payload.start,
        end=payload.end,
        description=payload.description,
        price=payload.price,
    )
    return 201, _event_to_response(event)


@events_router.get(
    "",
    response={200: EventListResponse},
    auth=bearer_auth,
    operation_id="listEvents",
    summary="List events",
)
def list_events_endpoint(
    request: AuthenticatedHttpRequest,
    provider_id: int | None = None,
    department_id: int | None = None,
    organization_id: int | None = None,
    available: bool = False,
) -> EventListResponse:
    """
    List events by provider, department or organization (most specific wins).

    ``available=true`` returns only unbooked future events.
    """
    events = list_events(
        provider_id=provider_id,
        department_id=department_id,
        organization_id=organization_id,
        available_only=available,
    )
    return EventListResponse(events=[_event_to_response(event) for event in events])


@events_router.get(
    "/{event_id}",
    response={200: EventResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="getEvent",
    summary="Get event",
)
def get_event_endpoint(request: AuthenticatedHttpRequest, event_id: int) -> EventResponse:
    return _event_to_response(get_event(event_id))


@events_router.put(
    "/{event_id}",
    response={
        200: EventResponse,
        400: ErrorResponse,
        403: ErrorResponse,
        404: ErrorResponse,
        409: ErrorResponse,
    },
    auth=bearer_auth,
    operation_id="updateEvent",
    summary="Update event",
)
def update_event_endpoint(
    request: AuthenticatedHttpRequest, event_id: int, payload: UpdateEventRequest
) -> EventResponse:
    """
    Update an unbooked event. Omitted fields are left unchanged.
    """
    user = request.auth.require_user()
    event = update_event(user, event_id, **payload.model_dump(exclude_unset=True))
    return _event_to_response(get_event(event.id))


@events_router.delete(
    "/{event_id}",
    response={200: SuccessResponse, 403: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse},
    auth=bearer_auth,
    operation_id="deleteEvent",
    summary="Delete event",
)
def delete_event_endpoint(request: AuthenticatedHttpRequest, event_id: int) -> SuccessResponse:
    user = request.auth.require_user()
    delete_event(user, event_id)
    return SuccessResponse()


# =============================================================================
# Bookings
# =============================================================================


@bookings_router.post(
    "",
    response={
        201: BookingResponse,
        400: ErrorResponse,
        404: ErrorResponse,
        409: ErrorResponse,
    },
    auth=bearer_auth,
    operation_id="createBooking",
    summary="Book event",
)
def create_booking_endpoint(
    request: AuthenticatedHttpRequest, payload: CreateBookingRequest
) -> tuple[int, BookingResponse]:
    """
    Book an event for the caller.

    Confirmation emails go to the client and the provider.
    """
    user = request.auth.require_user()
    booking = create_booking(user, payload.event_id)
    return 201, _booking_to_response(booking)


@bookings_router.get(
    "",
    response={200: BookingListResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="listBookings",
    summary="List bookings",
)
def list_bookings_endpoint(
    request: AuthenticatedHttpRequest,
    provider_id: int | None = None,
    organization_id: int | None = None,
) -> BookingListResponse:
    user = request.auth.require_user()
    bookings = list_bookings(user, provider_id=provider_id, organization_id=organization_id)
    return BookingListResponse(bookings=[_booking_to_response(booking) for booking in bookings])


@bookings_router.get(
    "/{booking_id}",
    response={200: BookingResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="getBooking",
    summary="Get booking",
)
def get_booking_endpoint(request: AuthenticatedHttpRequest, booking_id: int) -> BookingResponse:
    user = request.auth.require_user()
    return _booking_to_response(get_booking(user, booking_id))


@bookings_router.delete(
    "/{booking_id}",
    response={200: SuccessResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="cancelBooking",
    summary="Cancel booking",
)
def cancel_booking_endpoint(request: AuthenticatedHttpRequest, booking_id: int) -> SuccessResponse:
    """Cancel the caller's booking; the event becomes available again."""
    user = request.auth.require_user()
    cancel_booking(user, booking_id)
    return SuccessResponse()
