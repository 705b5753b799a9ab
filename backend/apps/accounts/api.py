"""
Accounts API endpoints.

- Current identity (any authenticated caller)
- User provisioning and API key administration (admin only)
"""

from ninja import Router

from apps.accounts.models import ApiKey, User
from apps.accounts.schemas import (
    ApiKeyListResponse,
    ApiKeyResponse,
    ApiKeyWithSecretResponse,
    CreateUserRequest,
    GenerateApiKeyRequest,
    UserListResponse,
    UserResponse,
)
from apps.accounts.services import (
    create_user,
    generate_api_key,
    get_user,
    list_api_keys,
    list_users,
    revoke_api_key,
)
from apps.core.logging import get_logger
from apps.core.schemas import ErrorResponse
from apps.core.security import ApiKeyAuth
from apps.core.types import AuthenticatedHttpRequest

logger = get_logger(__name__)

router = Router(tags=["auth"])
users_router = Router(tags=["admin"])
api_keys_router = Router(tags=["admin"])
bearer_auth = ApiKeyAuth()


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        is_active=user.is_active,
        created_at=user.created_at,
    )


def _api_key_to_response(api_key: ApiKey) -> ApiKeyResponse:
    return ApiKeyResponse(
        id=api_key.id,
        name=api_key.name,
        prefix=api_key.prefix,
        user_id=api_key.user_id,
        user_email=api_key.user.email,
        organization_id=api_key.organization_id,
        expires_at=api_key.expires_at,
        last_used_at=api_key.last_used_at,
        created_at=api_key.created_at,
    )


@router.get(
    "/me",
    response={200: UserResponse, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="getCurrentUser",
    summary="Get current user",
)
def get_me(request: AuthenticatedHttpRequest) -> UserResponse:
    """Return the user the bearer key authenticates as."""
    user = request.auth.require_user()
    return _user_to_response(user)


# =============================================================================
# Users (admin)
# =============================================================================


@users_router.post(
    "",
    response={201: UserResponse, 400: ErrorResponse, 403: ErrorResponse, 409: ErrorResponse},
    auth=bearer_auth,
    operation_id="createUser",
    summary="Create user",
)
def create_user_endpoint(
    request: AuthenticatedHttpRequest, payload: CreateUserRequest
) -> tuple[int, UserResponse]:
    """
    Create a platform user with a global role.

    A welcome email is sent on a best-effort basis. Requires the ADMIN role.
    """
    request.auth.require_admin()
    user = create_user(name=payload.name, email=payload.email, role=payload.role)
    return 201, _user_to_response(user)


@users_router.get(
    "",
    response={200: UserListResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="listUsers",
    summary="List users",
)
def list_users_endpoint(
    request: AuthenticatedHttpRequest, role: str | None = None
) -> UserListResponse:
    request.auth.require_admin()
    return UserListResponse(users=[_user_to_response(user) for user in list_users(role)])


# =============================================================================
# API keys (admin)
# =============================================================================


@api_keys_router.get(
    "",
    response={200: ApiKeyListResponse, 403: ErrorResponse},
    auth=bearer_auth,
    operation_id="listApiKeys",
    summary="List API keys",
)
def list_api_keys_endpoint(request: AuthenticatedHttpRequest) -> ApiKeyListResponse:
    request.auth.require_admin()
    return ApiKeyListResponse(api_keys=[_api_key_to_response(key) for key in list_api_keys()])


@api_keys_router.post(
    "",
    response={
        201: ApiKeyWithSecretResponse,
        400: ErrorResponse,
        403: ErrorResponse,
        404: ErrorResponse,
    },
    auth=bearer_auth,
    operation_id="generateApiKey",
    summary="Generate API key",
)
def generate_api_key_endpoint(
    request: AuthenticatedHttpRequest, payload: GenerateApiKeyRequest
) -> tuple[int, ApiKeyWithSecretResponse]:
    """
    Issue an API key for a user.

    **Important:** the raw key is only returned here. Store it securely.
    """
    request.auth.require_admin()

    from apps.organizations.services import get_organization

    user = get_user(payload.user_id)
    organization = (
        get_organization(payload.organization_id) if payload.organization_id is not None else None
    )
    api_key, raw_key = generate_api_key(
        user,
        name=payload.name,
        organization=organization,
        expires_in_days=payload.expires_in_days,
    )

    return 201, ApiKeyWithSecretResponse(
        **_api_key_to_response(api_key).model_dump(),
        key=raw_key,
    )


@api_keys_router.delete(
    "/{api_key_id}",
    response={204: None, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="revokeApiKey",
    summary="Revoke API key",
)
def revoke_api_key_endpoint(request: AuthenticatedHttpRequest, api_key_id: int) -> tuple[int, None]:
    request.auth.require_admin()
    revoke_api_key(api_key_id)
    return 204, None
