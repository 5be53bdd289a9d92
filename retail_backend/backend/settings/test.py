# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS
- In-memory SQLite, fast password hashing
- Deterministic sale-engine knobs (0-decimal currency, 0.01 tolerance)
- Throttling off so API tests never hit rate limits
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING, REST_FRAMEWORK

DEBUG = False
SECRET_KEY = "test-only-secret-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CURRENCY_DECIMAL_PLACES = 0
PAYMENT_TOLERANCE = "0.01"
INVOICE_DUE_DAYS = 30
ENFORCE_CUSTOMER_CREDIT_LIMIT = False

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
}

for _name in ("core", "products", "customers", "sales", "invoices"):
    LOGGING["loggers"][_name]["level"] = "WARNING"
