"""
Local development settings.

Extends base settings with development-friendly defaults.
"""

from .base import *  # noqa: F403

DEBUG = True
# Tenant subdomains resolve under *.localhost and *.dev.<root domain>
ALLOWED_HOSTS = ["localhost", "127.0.0.1", ".localhost", f".dev.{PLATFORM_ROOT_DOMAIN}"]  # noqa: F405
