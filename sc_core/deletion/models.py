# sc_core/deletion/models.py
import math

from django.db import models
from django.db.models import Q
from django.utils.timezone import now as tz_now

from sc_core.common.models import UUIDModel
from sc_core.iam.models import UserProfile


class DeletionStatus(models.TextChoices):
    PENDING_MFA = "PENDING_MFA", "Pending MFA"
    MFA_VERIFIED = "MFA_VERIFIED", "MFA verified"
    CANCELLED = "CANCELLED", "Cancelled"
    COMPLETED = "COMPLETED", "Completed"


ACTIVE_DELETION_STATUSES = (DeletionStatus.PENDING_MFA, DeletionStatus.MFA_VERIFIED)
TERMINAL_DELETION_STATUSES = (DeletionStatus.CANCELLED, DeletionStatus.COMPLETED)


class CancellationReason(models.TextChoices):
    USER = "USER", "Cancelled by user"
    MFA_TIMEOUT = "MFA_TIMEOUT", "MFA confirmation timed out"


class DeletionRequest(UUIDModel):
    """
    One account-erasure request.

    Every transition is a compare-and-set on (status, version), so a request ends
    in exactly one terminal state even when the sweep and the user race.
    """
    user = models.ForeignKey(UserProfile, on_delete=models.PROTECT, related_name="deletion_requests")

    status = models.CharField(
        max_length=16,
        choices=DeletionStatus.choices,
        default=DeletionStatus.PENDING_MFA,
        db_index=True,
    )
    version = models.PositiveIntegerField(default=0)

    requested_at = models.DateTimeField(default=tz_now)
    scheduled_deletion_date = models.DateTimeField(db_index=True)
    mfa_verified_at = models.DateTimeField(null=True, blank=True)
    account_locked = models.BooleanField(default=False)

    device_fingerprint = models.CharField(max_length=255, blank=True, default="")
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=512, blank=True, default="")

    reminder_sent_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=16, choices=CancellationReason.choices, blank=True, default="")
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "deletion_request"
        ordering = ["-requested_at"]
        indexes = [
            models.Index(fields=["status", "scheduled_deletion_date"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["user"],
                condition=Q(status__in=["PENDING_MFA", "MFA_VERIFIED"]),
                name="uq_deletion_active_per_user",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} {self.status}"

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_DELETION_STATUSES

    @property
    def mfa_verified(self) -> bool:
        return self.mfa_verified_at is not None

    def days_remaining(self, at=None) -> int:
        """
        Whole days left, rounded up; 0 once the date has passed.
        """
        seconds = (self.scheduled_deletion_date - (at or tz_now())).total_seconds()
        return max(0, math.ceil(seconds / 86400))
