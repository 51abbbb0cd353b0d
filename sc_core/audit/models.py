# sc_core/audit/models.py
from django.db import models

from sc_core.common.models import UUIDModel


class AppendOnlyModel(UUIDModel):
    """
    Rows are written once and never updated or deleted through the ORM.
    """

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError(f"{type(self).__name__} is append-only.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError(f"{type(self).__name__} is append-only.")


class AuditEvent(AppendOnlyModel):
    """
    Immutable record of a consent, collaboration, identity or deletion transition.
    Actors are referenced by user_code, which survives anonymization.
    """
    event_code = models.CharField(max_length=128, db_index=True)  # e.g. "deletion.mfa_verified"
    entity_type = models.CharField(max_length=128, db_index=True)  # e.g. "DeletionRequest"
    entity_id = models.CharField(max_length=64, db_index=True)

    actor_code = models.CharField(max_length=16, blank=True, default="", db_index=True)

    occurred_at = models.DateTimeField(auto_now_add=True, db_index=True)
    metadata = models.JSONField(default=dict)

    class Meta:
        db_table = "audit_audit_event"
        indexes = [
            models.Index(fields=["entity_type", "entity_id"]),
            models.Index(fields=["event_code", "occurred_at"]),
        ]


class AccessOutcome(models.TextChoices):
    SUCCESS = "SUCCESS", "Success"
    DENIED = "DENIED", "Denied"


class AccessEvent(AppendOnlyModel):
    """
    One row per access decision (ALLOW, PARTIAL or DENY).
    """
    actor_code = models.CharField(max_length=16, db_index=True)
    actor_role = models.CharField(max_length=32)
    target_patient_code = models.CharField(max_length=16, db_index=True)

    resource = models.CharField(max_length=32, db_index=True)
    action = models.CharField(max_length=8, default="READ")

    outcome = models.CharField(max_length=16, choices=AccessOutcome.choices, db_index=True)
    decision = models.CharField(max_length=16)
    reason = models.CharField(max_length=32, blank=True, default="")

    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)
    metadata = models.JSONField(default=dict)

    class Meta:
        db_table = "audit_access_event"
        indexes = [
            models.Index(fields=["target_patient_code", "timestamp"]),
            models.Index(fields=["actor_code", "timestamp"]),
        ]
