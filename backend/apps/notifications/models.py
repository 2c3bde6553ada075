"""
Notifications models - email audit log and per-user seen state.
"""

from django.conf import settings
from django.db import models

from apps.core.models import TenantScopedModel


class EmailLog(TenantScopedModel):
    """
    One row per delivered email.

    Also the source of truth for the per-organization hourly email quota.
    """

    recipient = models.EmailField()
    subject = models.CharField(max_length=255)
    template = models.CharField(max_length=64)
    provider_message_id = models.CharField(max_length=255, blank=True)
    sent_at = models.DateTimeField(db_index=True)

    class Meta:
        ordering = ["-sent_at"]

    def __str__(self) -> str:
        return f"{self.template} -> {self.recipient}"


class NotificationState(TenantScopedModel):
    """When a user last opened their notifications."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notification_states",
    )
    last_seen_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["organization", "user"], name="unique_notification_state_per_user"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} @ {self.organization_id}"
