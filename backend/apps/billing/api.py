"""
Billing API endpoints.

Subscription checkout for organization owners. Activation itself arrives
through the provider webhook (see webhooks.py).
"""

from ninja import Router

from apps.billing.schemas import CheckoutRequest, CheckoutResponse
from apps.billing.services import create_checkout
from apps.core.schemas import ErrorResponse
from apps.core.security import ApiKeyAuth
from apps.core.types import AuthenticatedHttpRequest

router = Router(tags=["billing"])
bearer_auth = ApiKeyAuth()


@router.post(
    "/checkout",
    response={200: CheckoutResponse, 400: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="createCheckout",
    summary="Create subscription checkout",
)
def create_checkout_endpoint(
    request: AuthenticatedHttpRequest, payload: CheckoutRequest
) -> CheckoutResponse:
    """
    Start a checkout for an organization that is not yet subscribed.

    Requires OWNER membership. The organization is enabled when the
    provider reports the completed checkout.
    """
    user = request.auth.require_user()
    return CheckoutResponse(**create_checkout(user, payload.organization_id))
