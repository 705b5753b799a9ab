"""
Notification services - transactional email through Resend.

Every ``notify_*`` helper is best-effort: delivery failures are logged and
swallowed so they never affect the state change that triggered them.
Call them after the surrounding transaction has committed.
"""

from typing import TYPE_CHECKING, Any

import resend
from django.template.loader import render_to_string

from apps.core.logging import get_logger
from config.settings.base import settings

if TYPE_CHECKING:
    from apps.accounts.models import User
    from apps.organizations.models import Organization
    from apps.scheduling.models import Booking, Event

logger = get_logger(__name__)


def send_email(to: str, subject: str, template_name: str, context: dict[str, Any]) -> bool:
    """
    Render an HTML template and send it through Resend.

    Returns True if the provider accepted the message.
    """
    if not settings.RESEND_API_KEY:
        logger.info("email_skipped_not_configured", template=template_name)
        return False

    resend.api_key = settings.RESEND_API_KEY
    try:
        html = render_to_string(
            f"notifications/{template_name}.html",
            {**context, "app_url": settings.CORS_ORIGIN},
        )
        response = resend.Emails.send(
            {
                "from": settings.RESEND_FROM_EMAIL,
                "to": [to],
                "subject": subject,
                "html": html,
            }
        )
    except Exception:
        logger.exception("email_send_failed", template=template_name)
        return False

    logger.info("email_sent", template=template_name, email_id=response.get("id"))
    return True


def notify_user_created(user: "User") -> bool:
    return send_email(
        to=user.email,
        subject="Welcome to Medisched - Your Account Created",
        template_name="user_created",
        context={"user": user},
    )


def notify_organization_created(organization: "Organization", owner: "User") -> bool:
    return send_email(
        to=owner.email,
        subject=f"Organization Created: {organization.name}",
        template_name="organization_created",
        context={"organization": organization, "owner": owner},
    )


def notify_subscription_activated(organization: "Organization", owner: "User") -> bool:
    return send_email(
        to=owner.email,
        subject=f"{organization.name} - Subscription Activated!",
        template_name="subscription_activated",
        context={"organization": organization, "owner": owner},
    )


def notify_booking_confirmed(booking: "Booking") -> bool:
    """
    Send the confirmation to the client and a heads-up to the provider.

    Returns True only if both messages were accepted.
    """
    event = booking.event
    provider_user = event.provider.user
    department = event.provider.department
    context = {
        "booking": booking,
        "event": event,
        "client": booking.client,
        "provider_user": provider_user,
        "department": department,
        "organization": department.organization,
    }

    client_sent = send_email(
        to=booking.client.email,
        subject=f"Appointment Confirmation with {provider_user.name or provider_user.email}",
        template_name="booking_confirmed_client",
        context=context,
    )
    provider_sent = send_email(
        to=provider_user.email,
        subject=f"New Appointment: {event.title}",
        template_name="booking_confirmed_provider",
        context=context,
    )
    return client_sent and provider_sent


def notify_booking_cancelled(event: "Event", client: "User") -> bool:
    provider_user = event.provider.user
    return send_email(
        to=provider_user.email,
        subject=f"Appointment Cancelled: {event.title}",
        template_name="booking_cancelled_provider",
        context={"event": event, "client": client, "provider_user": provider_user},
    )
