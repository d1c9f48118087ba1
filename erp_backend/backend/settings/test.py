# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS

- In-memory SQLite (fast, isolated)
- Fast password hashing
- Engine loggers quieted to WARNING so test output stays readable
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING  # explicit for Ruff (F405)

DEBUG = False
TESTING = True

SECRET_KEY = "test-only-secret-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

EDITOR_MAX_RETRIES = 3

for _name in ("accounting", "inventory", "documents", "ledger"):
    LOGGING["loggers"][_name]["level"] = "WARNING"
