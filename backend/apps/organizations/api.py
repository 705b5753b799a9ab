"""
Organizations API endpoints.

- Public organization directory and per-organization subscription status
- Admin organization lifecycle and platform overview
- Departments (organization owners)
"""

from django.http import HttpRequest
from ninja import Router

from apps.core.schemas import ErrorResponse, SuccessResponse
from apps.core.security import ApiKeyAuth
from apps.core.types import AuthenticatedHttpRequest
from apps.organizations.models import Department, Organization
from apps.organizations.schemas import (
    CreateDepartmentRequest,
    CreateOrganizationRequest,
    DepartmentListResponse,
    DepartmentProvider,
    DepartmentResponse,
    OrganizationActionResponse,
    OrganizationListResponse,
    OrganizationResponse,
    OrganizationSummary,
    OverviewResponse,
    PublicOrganization,
    PublicOrganizationListResponse,
    SubscriptionStatusResponse,
    ToggleOrganizationRequest,
)
from apps.organizations.services import (
    admin_overview,
    create_department,
    create_organization,
    delete_department,
    delete_organization,
    list_departments,
    list_organizations,
    list_public_organizations,
    set_organization_enabled,
)

router = Router(tags=["organizations"])
admin_router = Router(tags=["admin"])
departments_router = Router(tags=["departments"])
bearer_auth = ApiKeyAuth()


def _organization_to_response(organization: Organization) -> OrganizationResponse:
    return OrganizationResponse(
        id=organization.id,
        name=organization.name,
        slug=organization.slug,
        logo=organization.logo,
        enabled=organization.enabled,
        metadata=organization.metadata or {},
        created_at=organization.created_at,
    )


def _department_to_response(
    department: Department, with_providers: bool = True
) -> DepartmentResponse:
    providers = (
        [
            DepartmentProvider(
                id=provider.id,
                user_id=provider.user_id,
                name=provider.user.name,
                email=provider.user.email,
                specialization=provider.specialization,
            )
            for provider in department.providers.all()
        ]
        if with_providers
        else []
    )
    return DepartmentResponse(
        id=department.id,
        organization_id=department.organization_id,
        name=department.name,
        providers=providers,
        created_at=department.created_at,
    )


# =============================================================================
# Public / members
# =============================================================================


@router.get(
    "",
    response={200: PublicOrganizationListResponse},
    operation_id="listPublicOrganizations",
    summary="List organizations (public)",
)
def list_public_organizations_endpoint(request: HttpRequest) -> PublicOrganizationListResponse:
    """Organization directory for client signup. No authentication required."""
    return PublicOrganizationListResponse(
        organizations=[
            PublicOrganization(id=org.id, name=org.name, slug=org.slug, logo=org.logo)
            for org in list_public_organizations()
        ]
    )


@router.get(
    "/{organization_id}/subscription",
    response={200: SubscriptionStatusResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="getSubscriptionStatus",
    summary="Get organization subscription status",
)
def get_subscription_status_endpoint(
    request: AuthenticatedHttpRequest, organization_id: int
) -> SubscriptionStatusResponse:
    """Requires membership of the organization."""
    from apps.billing.services import get_subscription_status

    user = request.auth.require_user()
    return SubscriptionStatusResponse(**get_subscription_status(user, organization_id))


# =============================================================================
# Admin
# =============================================================================


@admin_router.post(
    "/organizations",
    response={
        201: OrganizationActionResponse,
        400: ErrorResponse,
        403: ErrorResponse,
        404: ErrorResponse,
        409: ErrorResponse,
    },
    auth=bearer_auth,
    operation_id="createOrganization",
    summary="Create organization",
)
def create_organization_endpoint(
    request: AuthenticatedHttpRequest, payload: CreateOrganizationRequest
) -> tuple[int, OrganizationActionResponse]:
    """
    Create a disabled organization and promote its owner.

    The owner is emailed the next steps (subscription). Requires ADMIN.
    """
    request.auth.require_admin()
    organization = create_organization(
        name=payload.name,
        slug=payload.slug,
        owner_id=payload.owner_id,
        logo=payload.logo,
    )
    return 201, OrganizationActionResponse(
        organization=_organization_to_response(organization),
        message="Organization created. Owner notified to complete subscription.",
    )


@admin_router.get(
    "/organizations",
    response={200: OrganizationListResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="listOrganizations",
    summary="List organizations (admin)",
)
def list_organizations_endpoint(request: AuthenticatedHttpRequest) -> OrganizationListResponse:
    request.auth.require_admin()
    return OrganizationListResponse(
        organizations=[
            OrganizationSummary(
                **_organization_to_response(org).model_dump(),
                member_count=org.member_count,
                department_count=org.department_count,
            )
            for org in list_organizations()
        ]
    )


@admin_router.post(
    "/organizations/{organization_id}/toggle",
    response={200: OrganizationActionResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="toggleOrganization",
    summary="Enable or disable organization",
)
def toggle_organization_endpoint(
    request: AuthenticatedHttpRequest, organization_id: int, payload: ToggleOrganizationRequest
) -> OrganizationActionResponse:
    request.auth.require_admin()
    organization, message = set_organization_enabled(organization_id, payload.enabled)
    return OrganizationActionResponse(
        organization=_organization_to_response(organization),
        message=message,
    )


@admin_router.delete(
    "/organizations/{organization_id}",
    response={200: SuccessResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="deleteOrganization",
    summary="Delete organization",
)
def delete_organization_endpoint(
    request: AuthenticatedHttpRequest, organization_id: int
) -> SuccessResponse:
    """Delete an organization with its departments, providers, events and bookings."""
    request.auth.require_admin()
    delete_organization(organization_id)
    return SuccessResponse()


@admin_router.get(
    "/overview",
    response={200: OverviewResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="getAdminOverview",
    summary="Platform overview",
)
def admin_overview_endpoint(request: AuthenticatedHttpRequest) -> OverviewResponse:
    request.auth.require_admin()
    return OverviewResponse(**admin_overview())


# =============================================================================
# Departments
# =============================================================================


@departments_router.post(
    "",
    response={
        201: DepartmentResponse,
        400: ErrorResponse,
        403: ErrorResponse,
        404: ErrorResponse,
    },
    auth=bearer_auth,
    operation_id="createDepartment",
    summary="Create department",
)
def create_department_endpoint(
    request: AuthenticatedHttpRequest, payload: CreateDepartmentRequest
) -> tuple[int, DepartmentResponse]:
    """Requires OWNER membership; the organization must be enabled."""
    user = request.auth.require_user()
    department = create_department(user, payload.organization_id, payload.name)
    return 201, _department_to_response(department, with_providers=False)


@departments_router.get(
    "",
    response={200: DepartmentListResponse},
    auth=bearer_auth,
    operation_id="listDepartments",
    summary="List departments",
)
def list_departments_endpoint(
    request: AuthenticatedHttpRequest, organization_id: int
) -> DepartmentListResponse:
    return DepartmentListResponse(
        departments=[
            _department_to_response(department)
            for department in list_departments(organization_id)
        ]
    )


@departments_router.delete(
    "/{department_id}",
    response={200: SuccessResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="deleteDepartment",
    summary="Delete department",
)
def delete_department_endpoint(
    request: AuthenticatedHttpRequest, department_id: int
) -> SuccessResponse:
    user = request.auth.require_user()
    delete_department(user, department_id)
    return SuccessResponse()
