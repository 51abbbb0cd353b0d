# sc_core/access/scopes.py
"""
Resource kinds, and how a kind or a delegated access scope narrows a record set.
"""
from __future__ import annotations

from typing import Iterable

from django.db import models

from sc_core.collaboration.models import AccessScope
from sc_core.common.conf import domain_setting
from sc_core.records.models import MedicalRecord, RecordType


class ResourceKind(models.TextChoices):
    RECORDS = "RECORDS", "All record types"
    DIAGNOSIS = "DIAGNOSIS", "Diagnoses"
    PRESCRIPTION = "PRESCRIPTION", "Prescriptions"
    LAB_RESULT = "LAB_RESULT", "Lab results"
    IMAGING = "IMAGING", "Imaging"
    VITALS = "VITALS", "Vitals"
    CARE_NOTE = "CARE_NOTE", "Care notes"
    METADATA = "METADATA", "Operational metadata"
    AGGREGATE_DEIDENTIFIED = "AGGREGATE_DEIDENTIFIED", "De-identified aggregates"


# None means "every record type"
KIND_RECORD_TYPES: dict[str, frozenset[str] | None] = {
    ResourceKind.RECORDS: None,
    ResourceKind.DIAGNOSIS: frozenset({RecordType.DIAGNOSIS}),
    ResourceKind.PRESCRIPTION: frozenset({RecordType.PRESCRIPTION}),
    ResourceKind.LAB_RESULT: frozenset({RecordType.LAB_RESULT}),
    ResourceKind.IMAGING: frozenset({RecordType.IMAGING}),
    ResourceKind.VITALS: frozenset({RecordType.VITALS}),
    ResourceKind.CARE_NOTE: frozenset({RecordType.GENERAL}),
}

RECORD_TYPE_KIND: dict[str, str] = {
    RecordType.DIAGNOSIS: ResourceKind.DIAGNOSIS,
    RecordType.PRESCRIPTION: ResourceKind.PRESCRIPTION,
    RecordType.LAB_RESULT: ResourceKind.LAB_RESULT,
    RecordType.IMAGING: ResourceKind.IMAGING,
    RecordType.VITALS: ResourceKind.VITALS,
    RecordType.GENERAL: ResourceKind.CARE_NOTE,
}

# SUMMARY is handled separately: the N most recent records of any type.
SCOPE_RECORD_TYPES: dict[str, frozenset[str] | None] = {
    AccessScope.LAB_REPORTS: frozenset({RecordType.LAB_RESULT}),
    AccessScope.PRESCRIPTIONS: frozenset({RecordType.PRESCRIPTION}),
    AccessScope.RADIOLOGY: frozenset({RecordType.IMAGING}),
    AccessScope.FULL: None,
}

CLINICAL_KINDS = frozenset(KIND_RECORD_TYPES)
NURSE_KINDS = frozenset({ResourceKind.VITALS, ResourceKind.CARE_NOTE})
ADMIN_KINDS = frozenset({ResourceKind.METADATA, ResourceKind.AGGREGATE_DEIDENTIFIED})


def records_of_kind(patient_id, kind: str) -> models.QuerySet[MedicalRecord]:
    qs = MedicalRecord.objects.filter(patient_id=patient_id)
    types = KIND_RECORD_TYPES.get(kind)
    if types is not None:
        qs = qs.filter(record_type__in=types)
    return qs.order_by("-created_at")


def ids_visible_under_scopes(patient_id, scopes: Iterable[str]) -> set:
    """
    Union of the record ids each delegated scope exposes.
    """
    visible: set = set()
    base = MedicalRecord.objects.filter(patient_id=patient_id)
    for scope in scopes:
        if scope == AccessScope.SUMMARY:
            limit = domain_setting("COLLABORATION_SUMMARY_LIMIT")
            visible.update(base.order_by("-created_at").values_list("id", flat=True)[:limit])
            continue
        types = SCOPE_RECORD_TYPES.get(scope, frozenset())
        qs = base if types is None else base.filter(record_type__in=types)
        visible.update(qs.values_list("id", flat=True))
    return visible
