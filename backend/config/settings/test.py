"""
Test settings.

Provides placeholder credentials so the required settings validate,
and runs against an in-memory SQLite database.
"""

import os

for _key, _value in {
    "SUPABASE_URL": "https://test-project.supabase.co",
    "SUPABASE_ANON_KEY": "anon_test_key",
    "STRIPE_SECRET_KEY": "sk_test_123",
    "STRIPE_WEBHOOK_SECRET": "whsec_test",
    "STRIPE_PUBLISHABLE_KEY": "pk_test_123",
    "APP_URL": "https://app.buildledger.test",
    "LOG_JSON": "false",
    "LOG_LEVEL": "WARNING",
}.items():
    os.environ.setdefault(_key, _value)

from .base import *  # noqa: E402, F403

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
