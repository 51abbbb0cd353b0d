# sc_core/notifications/models.py
from __future__ import annotations

from django.db import models
from django.utils import timezone

from sc_core.common.models import UUIDModel
from sc_core.iam.models import UserProfile


class NotificationChannel(models.TextChoices):
    IN_APP = "IN_APP", "In App"
    AUTHENTICATOR = "AUTHENTICATOR", "Authenticator"


class NotificationTopic(models.TextChoices):
    DELETION = "DELETION", "Account deletion"
    CONSENT = "CONSENT", "Consent"
    COLLABORATION = "COLLABORATION", "Collaboration"


class NotificationStage(models.TextChoices):
    INITIAL = "INITIAL", "Deletion requested"
    MFA_CONFIRMATION = "MFA_CONFIRMATION", "Deletion confirmed"
    REMINDER_24H = "REMINDER_24H", "24 hour reminder"
    CANCELLED = "CANCELLED", "Deletion cancelled"
    FINAL = "FINAL", "Account deleted"
    CONSENT_REQUESTED = "CONSENT_REQUESTED", "Consent requested"
    COLLABORATION_REQUESTED = "COLLABORATION_REQUESTED", "Collaboration requested"


class Notification(UUIDModel):
    """
    Delivery record per recipient and channel.
    AUTHENTICATOR rows are the feed an authenticator companion app polls and acknowledges.
    """
    recipient = models.ForeignKey(UserProfile, on_delete=models.CASCADE, related_name="notifications")

    channel = models.CharField(
        max_length=16,
        choices=NotificationChannel.choices,
        default=NotificationChannel.IN_APP,
        db_index=True,
    )
    topic = models.CharField(max_length=16, choices=NotificationTopic.choices, db_index=True)
    stage = models.CharField(max_length=32, choices=NotificationStage.choices, db_index=True)

    title = models.CharField(max_length=255)
    body = models.TextField(blank=True, default="")

    deletion_request_id = models.UUIDField(null=True, blank=True, db_index=True)

    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)
    acknowledged_at = models.DateTimeField(null=True, blank=True)

    meta = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "notifications_notification"
        indexes = [
            models.Index(fields=["recipient", "channel", "topic"]),
        ]

    def mark_read(self) -> None:
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()

    def acknowledge(self) -> None:
        self.mark_read()
        if self.acknowledged_at is None:
            self.acknowledged_at = timezone.now()
