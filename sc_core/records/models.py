# sc_core/records/models.py
from django.db import models

from sc_core.common.models import UUIDModel
from sc_core.iam.models import UserProfile


class RecordType(models.TextChoices):
    LAB_RESULT = "LAB_RESULT", "Lab result"
    PRESCRIPTION = "PRESCRIPTION", "Prescription"
    DIAGNOSIS = "DIAGNOSIS", "Diagnosis"
    IMAGING = "IMAGING", "Imaging"
    VITALS = "VITALS", "Vitals"
    GENERAL = "GENERAL", "General / care note"


class MedicalRecord(UUIDModel):
    """
    Clinical entry owned by the patient, authored by clinical staff.

    Rows outlive account erasure: the patient profile is anonymized in place, so
    `patient` and `created_by` keep pointing at stable user codes.
    """
    patient = models.ForeignKey(UserProfile, on_delete=models.PROTECT, related_name="medical_records")
    created_by = models.ForeignKey(UserProfile, on_delete=models.PROTECT, related_name="authored_records")

    record_type = models.CharField(max_length=16, choices=RecordType.choices, default=RecordType.GENERAL, db_index=True)
    title = models.CharField(max_length=255)
    diagnosis = models.TextField(blank=True, default="")
    details = models.TextField(blank=True, default="")
    prescription = models.TextField(blank=True, default="")

    class Meta:
        db_table = "records_medical_record"
        indexes = [
            models.Index(fields=["patient", "record_type", "created_at"]),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.record_type} {self.title}"
