"""
Core security - authentication classes for API.
"""

from django.http import HttpRequest
from ninja.security import HttpBearer

from apps.core.auth import AuthContext
from apps.core.logging import bind_contextvars


class ApiKeyAuth(HttpBearer):
    """
    Bearer API key authentication for API endpoints.

    Resolves ``Authorization: Bearer <key>`` to an active ApiKey and
    returns an AuthContext, which django-ninja stores on ``request.auth``.
    Returning None makes ninja answer 401.
    """

    def authenticate(self, request: HttpRequest, token: str) -> AuthContext | None:
        if not token:
            return None

        from apps.accounts.services import authenticate_api_key

        api_key = authenticate_api_key(token)
        if api_key is None:
            return None

        bind_contextvars(**{"usr.id": str(api_key.user_id)})
        if api_key.organization_id is not None:
            bind_contextvars(**{"organization.id": str(api_key.organization_id)})
        return AuthContext(user=api_key.user, api_key=api_key)
