"""
Core models - shared base classes.
"""

from django.db import models


class TimestampedModel(models.Model):
    """Abstract base model with created_at/updated_at timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class TenantScopedModel(TimestampedModel):
    """
    Abstract base model for organization-scoped entities.

    Every query against a subclass must filter on ``organization``; services
    take the organization from the caller's AuthContext, never from input.

    Usage:
        class Product(TenantScopedModel):
            sku = models.CharField(max_length=64)
    """

    organization = models.ForeignKey(
        "organizations.Organization",
        on_delete=models.CASCADE,
        related_name="%(class)s_set",
    )

    class Meta:
        abstract = True
