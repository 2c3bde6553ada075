"""
Organizations models - multi-tenancy foundation.
"""

from django.conf import settings
from django.db import models


class Organization(models.Model):
    """
    A tenant, addressed by its slug as a subdomain.

    The local record is the source of truth for tenancy. ``stytch_org_id``
    links the matching Stytch organization once provisioning succeeds and
    may stay empty while the identity provider is unavailable.
    """

    name = models.CharField(max_length=255)
    slug = models.SlugField(
        max_length=48,
        unique=True,
        help_text="Subdomain label, e.g. 'bunga-mawar'",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="owned_organizations",
    )

    stytch_org_id = models.CharField(
        max_length=255,
        blank=True,
        db_index=True,
        help_text="Stytch organization_id, e.g. 'organization-xxx'",
    )

    onboarding_completed = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    courier_connected = models.BooleanField(default=False)
    courier_configured_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.name
