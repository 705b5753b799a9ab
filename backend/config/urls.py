"""
URL configuration for the backend.
"""

from django.contrib import admin
from django.urls import path

from apps.billing.webhooks import subscription_provider_webhook

from .api import api

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/v1/", api.urls),
    # Webhooks - outside Django Ninja for raw request handling
    path(
        "webhooks/subscription-provider/",
        subscription_provider_webhook,
        name="subscription-provider-webhook",
    ),
]
