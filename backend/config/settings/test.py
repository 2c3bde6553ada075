"""
Test settings.

In-memory SQLite and cache; no external services are configured.
"""

from .base import *  # noqa: F403

DEBUG = False
SECRET_KEY = "test-secret-key"
ALLOWED_HOSTS = ["testserver", "localhost", ".localhost", ".whatthepack.today"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

PLATFORM_ROOT_DOMAIN = "whatthepack.today"
STYTCH_PROJECT_ID = "project-test-00000000-0000-0000-0000-000000000000"
STYTCH_SECRET = "secret-test"
STYTCH_API_BASE_URL = "https://test.stytch.com"
RESEND_API_KEY = ""
LLM_API_KEY = ""
LOG_LEVEL = "WARNING"
