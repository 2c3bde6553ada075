"""
Tenancy app configuration.
"""

from django.apps import AppConfig


class TenancyConfig(AppConfig):
    """Configuration for tenancy app (slugs, subdomains, navigation)."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.tenancy"
    verbose_name = "Tenancy"
