# sc_core/iam/models.py
from django.conf import settings
from django.db import models

from sc_core.common.models import UUIDModel


class Role(models.TextChoices):
    PATIENT = "PATIENT", "Patient"
    DOCTOR = "DOCTOR", "Doctor"
    NURSE = "NURSE", "Nurse"
    LAB_TECHNICIAN = "LAB_TECHNICIAN", "Lab Technician"
    ADMIN = "ADMIN", "Administrator"


ROLE_PREFIXES = {
    Role.PATIENT: "P",
    Role.DOCTOR: "D",
    Role.NURSE: "N",
    Role.LAB_TECHNICIAN: "L",
    Role.ADMIN: "A",
}

CLINICAL_ROLES = frozenset({Role.DOCTOR, Role.NURSE, Role.LAB_TECHNICIAN})


class UserStatus(models.TextChoices):
    ACTIVE = "ACTIVE", "Active"
    SUSPENDED = "SUSPENDED", "Suspended"


class UserProfile(UUIDModel):
    """
    Healthcare identity anchored to Django's AUTH_USER_MODEL.

    `user_code` is the public identifier (role-prefixed, e.g. P005, D002) used by every
    other app; it survives anonymization so historical records and audit rows keep
    their referential integrity.
    """
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="sc_profile")

    user_code = models.CharField(max_length=16, unique=True)
    role = models.CharField(max_length=32, choices=Role.choices, db_index=True)

    first_name = models.CharField(max_length=150, blank=True, default="")
    last_name = models.CharField(max_length=150, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")
    specialty = models.CharField(max_length=128, blank=True, default="")

    # Nurses see vitals/care notes only for patients in the same unit
    care_unit = models.SlugField(max_length=64, blank=True, default="", db_index=True)

    mfa_enabled = models.BooleanField(default=False)
    mfa_secret = models.CharField(max_length=64, blank=True, default="")
    mfa_pending_secret = models.CharField(max_length=64, blank=True, default="")

    account_locked = models.BooleanField(default=False)
    status = models.CharField(
        max_length=16,
        choices=UserStatus.choices,
        default=UserStatus.ACTIVE,
        db_index=True,
    )
    anonymized_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "iam_user_profile"
        indexes = [
            models.Index(fields=["role", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.user_code} ({self.role})"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_anonymized(self) -> bool:
        return self.anonymized_at is not None
