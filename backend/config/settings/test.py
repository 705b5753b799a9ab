"""
Test settings.

File-backed SQLite so threaded tests get real separate connections, no
outbound email, a fixed webhook secret.
"""

from .base import *  # noqa: F403
from .base import BASE_DIR, configure_logging, settings

DEBUG = False
ALLOWED_HOSTS = ["testserver", "localhost"]

# IMMEDIATE makes concurrent writers queue on the database lock (up to
# ``timeout`` seconds) instead of failing on lock upgrade.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": str(BASE_DIR / "medisched.sqlite3"),
        "OPTIONS": {"transaction_mode": "IMMEDIATE", "timeout": 20},
        "TEST": {"NAME": str(BASE_DIR / "test_medisched.sqlite3")},
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

settings.RESEND_API_KEY = ""
settings.SUBSCRIPTION_WEBHOOK_SECRET = "whsec_test_secret"
settings.SUBSCRIPTION_LEGACY_PROVISIONING = True
settings.SCHEDULING_TIMEZONE = "UTC"
settings.SCHEDULING_WINDOW_START_HOUR = 8
settings.SCHEDULING_WINDOW_END_HOUR = 20

configure_logging(json_format=False, log_level="WARNING")
