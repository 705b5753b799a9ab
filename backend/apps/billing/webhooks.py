"""
Subscription provider webhook handler.

Handles incoming webhooks from the subscription provider.
This is a separate view (not Django Ninja) for raw request handling
needed to verify signatures.
"""

import json

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from apps.billing.services import handle_webhook_event
from apps.billing.signing import SIGNATURE_HEADER, verify_signature
from apps.core.logging import get_logger
from config.settings.base import settings

logger = get_logger(__name__)


@csrf_exempt
@require_POST
def subscription_provider_webhook(request: HttpRequest) -> HttpResponse:
    """
    Handle subscription provider webhook events.

    Verifies the signature, validates the envelope and dispatches. Once the
    event is verified it is always acknowledged; handler failures are logged
    rather than retried.
    """
    if not settings.SUBSCRIPTION_WEBHOOK_SECRET:
        logger.error("subscription_webhook_secret_not_configured")
        return HttpResponse(status=500)

    payload = request.body
    signature = request.headers.get(SIGNATURE_HEADER)

    if not signature:
        logger.warning("subscription_webhook_missing_signature")
        return JsonResponse({"detail": "Missing signature"}, status=401)

    if not verify_signature(payload, settings.SUBSCRIPTION_WEBHOOK_SECRET, signature):
        logger.warning("subscription_webhook_invalid_signature")
        return JsonResponse({"detail": "Invalid signature"}, status=401)

    try:
        event = json.loads(payload)
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning("subscription_webhook_invalid_payload", error=str(e))
        return JsonResponse({"detail": "Invalid payload"}, status=400)

    if (
        not isinstance(event, dict)
        or not isinstance(event.get("type"), str)
        or not isinstance(event.get("data"), dict)
    ):
        logger.warning("subscription_webhook_malformed_event")
        return JsonResponse(
            {"detail": "Webhook event must have a type and a data object"}, status=400
        )

    logger.info("subscription_webhook_received", event_type=event["type"])

    try:
        handle_webhook_event(
            event,
            legacy_provisioning=settings.SUBSCRIPTION_LEGACY_PROVISIONING,
        )
    except Exception:
        # Verified events are always acknowledged
        logger.exception("subscription_webhook_handler_error", event_type=event["type"])

    return JsonResponse({"received": True})
