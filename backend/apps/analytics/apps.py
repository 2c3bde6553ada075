"""
Analytics app configuration.
"""

from django.apps import AppConfig


class AnalyticsConfig(AppConfig):
    """Configuration for analytics app. Read-only reports, no models."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.analytics"
    verbose_name = "Analytics"
