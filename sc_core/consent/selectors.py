# sc_core/consent/selectors.py
from __future__ import annotations

from django.db.models import QuerySet

from sc_core.consent.models import Consent, ConsentStatus


def consents_for_patient(patient_code: str) -> QuerySet[Consent]:
    return Consent.objects.select_related("patient", "doctor").filter(patient__user_code=patient_code)


def pending_for_patient(patient_code: str) -> QuerySet[Consent]:
    return consents_for_patient(patient_code).filter(status=ConsentStatus.PENDING).order_by("-requested_at")


def granted_for_patient(patient_code: str) -> QuerySet[Consent]:
    return consents_for_patient(patient_code).filter(status=ConsentStatus.GRANTED).order_by("-responded_at")


def requested_by_doctor(doctor_code: str) -> QuerySet[Consent]:
    return (
        Consent.objects.select_related("patient", "doctor")
        .filter(doctor__user_code=doctor_code)
        .order_by("-requested_at")
    )


def consent_for_pair(*, doctor_code: str, patient_code: str, statuses=None) -> Consent | None:
    qs = Consent.objects.filter(doctor__user_code=doctor_code, patient__user_code=patient_code)
    if statuses:
        qs = qs.filter(status__in=statuses)
    return qs.order_by("-requested_at").first()
