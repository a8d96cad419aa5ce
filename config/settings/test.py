"""
Test settings – SQLite database and a fixed secret so the suite runs
without any external services.
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

from .base import *  # noqa: E402, F401, F403

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# The console is always exercised in-process by the test-suite.
CONSOLE_BACKEND = "local"

LOGGING["root"]["level"] = "WARNING"  # noqa: F405
