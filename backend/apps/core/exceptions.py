"""
Service-layer exceptions.

Business rules raise these; the API layer renders them as
``{"detail": message}`` with the matching HTTP status.
"""


class ServiceError(Exception):
    """Base exception for business-rule violations."""

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    """Malformed or missing input, or a timing rule was broken."""

    status_code = 400
    default_message = "Invalid request"


class Unauthorized(ServiceError):
    """No identity, or the identity could not be verified."""

    status_code = 401
    default_message = "Unauthorized"


class Forbidden(ServiceError):
    """Authenticated, but lacking the role or ownership required."""

    status_code = 403
    default_message = "Forbidden"


class NotFound(ServiceError):
    """Referenced entity does not exist."""

    status_code = 404
    default_message = "Not found"


class Conflict(ServiceError):
    """The request conflicts with current state (e.g. event already booked)."""

    status_code = 409
    default_message = "Conflict"
