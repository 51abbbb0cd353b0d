# sc_core/consent/models.py
from django.db import models
from django.db.models import Q
from django.utils.timezone import now as tz_now

from sc_core.common.models import UUIDModel
from sc_core.iam.models import UserProfile


class ConsentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    GRANTED = "GRANTED", "Granted"
    DENIED = "DENIED", "Denied"
    REVOKED = "REVOKED", "Revoked"
    EXPIRED = "EXPIRED", "Expired"


ACTIVE_CONSENT_STATUSES = (ConsentStatus.PENDING, ConsentStatus.GRANTED)


class Consent(UUIDModel):
    """
    A doctor's access to one patient's records, decided by that patient.

    At most one PENDING-or-GRANTED row exists per (patient, doctor); terminal rows
    (DENIED, REVOKED, EXPIRED) are kept as history and never block a new request.
    """
    patient = models.ForeignKey(UserProfile, on_delete=models.PROTECT, related_name="consents_given")
    doctor = models.ForeignKey(UserProfile, on_delete=models.PROTECT, related_name="consents_requested")

    status = models.CharField(
        max_length=16,
        choices=ConsentStatus.choices,
        default=ConsentStatus.PENDING,
        db_index=True,
    )

    requested_at = models.DateTimeField(default=tz_now)
    responded_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True, db_index=True)
    revoked_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "consent_consent"
        indexes = [
            models.Index(fields=["patient", "status"]),
            models.Index(fields=["doctor", "status"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["patient", "doctor"],
                condition=Q(status__in=["PENDING", "GRANTED"]),
                name="uq_consent_active_per_pair",
            ),
        ]

    def is_expired(self, at=None) -> bool:
        """
        A consent without expiry never expires.
        """
        if self.expires_at is None:
            return False
        return (at or tz_now()) >= self.expires_at
