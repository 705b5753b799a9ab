"""
Custom type definitions for the application.

These types help mypy understand custom attributes added by
middleware and the bearer security class.
"""

from django.http import HttpRequest

from apps.core.auth import AuthContext


class AuthenticatedHttpRequest(HttpRequest):
    """
    HttpRequest after ApiKeyAuth has run.

    Use this type for endpoints that require authentication.
    """

    auth: AuthContext
    request_id: str
