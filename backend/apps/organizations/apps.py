"""
Organizations app configuration.
"""

from django.apps import AppConfig


class OrganizationsConfig(AppConfig):
    """Configuration for organizations app (tenants and onboarding)."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.organizations"
    verbose_name = "Organizations"
