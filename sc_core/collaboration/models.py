# sc_core/collaboration/models.py
from django.db import models
from django.db.models import Q
from django.utils.timezone import now as tz_now

from sc_core.common.models import UUIDModel
from sc_core.iam.models import UserProfile


class AccessScope(models.TextChoices):
    SUMMARY = "SUMMARY", "Summary (most recent records)"
    LAB_REPORTS = "LAB_REPORTS", "Lab reports"
    PRESCRIPTIONS = "PRESCRIPTIONS", "Prescriptions"
    RADIOLOGY = "RADIOLOGY", "Radiology"
    FULL = "FULL", "Full record"


class CollaborationStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    ACCEPTED = "ACCEPTED", "Accepted"
    DECLINED = "DECLINED", "Declined"
    REVOKED = "REVOKED", "Revoked"
    EXPIRED = "EXPIRED", "Expired"


OPEN_COLLABORATION_STATUSES = (CollaborationStatus.PENDING, CollaborationStatus.ACCEPTED)


class Collaboration(UUIDModel):
    """
    Peer consultation: a doctor holding patient consent delegates a scope-limited
    view of that patient's records to a consulting doctor.
    """
    patient = models.ForeignKey(UserProfile, on_delete=models.PROTECT, related_name="collaborations_about")
    requesting_doctor = models.ForeignKey(UserProfile, on_delete=models.PROTECT, related_name="collaborations_sent")
    consulting_doctor = models.ForeignKey(UserProfile, on_delete=models.PROTECT, related_name="collaborations_received")

    access_scope = models.CharField(max_length=16, choices=AccessScope.choices, default=AccessScope.SUMMARY)
    status = models.CharField(
        max_length=16,
        choices=CollaborationStatus.choices,
        default=CollaborationStatus.PENDING,
        db_index=True,
    )
    reason = models.TextField(blank=True, default="")

    responded_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    revoked_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "collaboration_collaboration"
        indexes = [
            models.Index(fields=["consulting_doctor", "patient", "status"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["patient", "requesting_doctor", "consulting_doctor"],
                condition=Q(status__in=["PENDING", "ACCEPTED"]),
                name="uq_collaboration_open_per_triple",
            ),
        ]

    def is_expired(self, at=None) -> bool:
        if self.expires_at is None:
            return False
        return (at or tz_now()) >= self.expires_at
