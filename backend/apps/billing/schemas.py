"""
Billing API schemas - request/response types for billing endpoints.
"""

from ninja import Schema


class CheckoutRequest(Schema):
    """Request to start a subscription checkout for an organization."""

    organization_id: int


class CheckoutMetadata(Schema):
    """Echoed back by the provider on the webhook."""

    organizationId: str  # noqa: N815 - provider field name
    organizationName: str  # noqa: N815
    userId: str  # noqa: N815


class CheckoutResponse(Schema):
    """Where to send the owner to pay."""

    checkout_url: str
    organization_id: int
    organization_name: str
    product_id: str
    amount: int  # Amount in cents
    currency: str  # e.g., 'usd'
    success_url: str
    metadata: CheckoutMetadata
    message: str
