"""Settings for the test suite: in-memory database, no network."""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")

from config.settings import *  # noqa: E402,F401,F403

DEBUG = False

TIME_ZONE = "UTC"
CELERY_TIMEZONE = TIME_ZONE

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
DEFAULT_FROM_EMAIL = "shop@example.com"

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

FRONTEND_URL = "https://shop.example.test"
PAYMENT_GATEWAY = "fake"
PAYOS_VERIFY_WEBHOOK_SIGNATURE = False
LOYALTY_POINTS_MULTIPLIER = "0.01"

LOGGING["root"]["level"] = "WARNING"  # noqa: F405
