"""Settings for the test suite.

Fixed secrets, SQLite, in-process cache, eager Celery and an in-memory
e-mail outbox so the suite runs without Redis, Stripe or Resend.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

from config.settings import *  # noqa: E402,F401,F403

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "storefront-tests",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

STRIPE_SECRET_KEY = "sk_test_storefront"
STRIPE_WEBHOOK_SECRET = "whsec_storefront_test_secret"
STRIPE_CURRENCY = "usd"
STOREFRONT_BASE_URL = "http://testserver"

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    "DEFAULT_THROTTLE_RATES": {
        "anon": "10000/day",
        "user": "10000/hour",
        "checkout": "10000/minute",
        "order_listing": "10000/minute",
        "payment_webhook": "10000/minute",
    },
}
