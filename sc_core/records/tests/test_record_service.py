import pytest

from sc_core.access.engine import Outcome
from sc_core.access.scopes import ResourceKind
from sc_core.common.errors import AccountLocked, ConsentRequired, NotFound, OutOfUnit, RoleForbidden
from sc_core.consent.services import ConsentLedger
from sc_core.iam.actor import Actor
from sc_core.records.models import MedicalRecord, RecordType
from sc_core.records.services import RecordService

pytestmark = pytest.mark.django_db


def grant(doctor, patient):
    consent = ConsentLedger.request(actor=Actor.of(doctor), patient_code=patient.user_code)
    return ConsentLedger.grant(actor=Actor.of(patient), consent_id=consent.id)


def create(actor_profile, patient, record_type, **extra):
    return RecordService.create_record(
        actor=Actor.of(actor_profile),
        patient_code=patient.user_code,
        record_type=record_type,
        title=extra.pop("title", "Entry"),
        **extra,
    )


def test_doctor_with_consent_creates_record(doctor, patient):
    grant(doctor, patient)
    record = create(doctor, patient, RecordType.DIAGNOSIS, diagnosis="Type 2 diabetes")

    assert record.patient == patient
    assert record.created_by == doctor
    assert MedicalRecord.objects.count() == 1


def test_doctor_without_consent_cannot_create(doctor, patient):
    with pytest.raises(ConsentRequired):
        create(doctor, patient, RecordType.PRESCRIPTION)
    assert MedicalRecord.objects.count() == 0


def test_nurse_writes_vitals_in_own_unit_only(nurse, patient, other_patient):
    create(nurse, patient, RecordType.VITALS, details="BP 120/80")

    with pytest.raises(OutOfUnit):
        create(nurse, other_patient, RecordType.VITALS)
    with pytest.raises(RoleForbidden):
        create(nurse, patient, RecordType.DIAGNOSIS)


def test_lab_technician_creates_only_lab_results(lab_tech, patient):
    create(lab_tech, patient, RecordType.LAB_RESULT, details="HbA1c 6.1%")
    with pytest.raises(RoleForbidden):
        create(lab_tech, patient, RecordType.PRESCRIPTION)


def test_locked_patient_rejects_new_records(doctor, patient):
    grant(doctor, patient)
    patient.account_locked = True
    patient.save(update_fields=["account_locked"])

    with pytest.raises(AccountLocked):
        create(doctor, patient, RecordType.DIAGNOSIS)


def test_unknown_patient_is_not_found(doctor):
    with pytest.raises(NotFound):
        RecordService.create_record(
            actor=Actor.of(doctor),
            patient_code="P999",
            record_type=RecordType.GENERAL,
            title="x",
        )


def test_patient_views_own_records(doctor, patient):
    grant(doctor, patient)
    create(doctor, patient, RecordType.DIAGNOSIS)
    create(doctor, patient, RecordType.PRESCRIPTION)

    view = RecordService.mine(actor=Actor.of(patient))
    assert view.decision.outcome == Outcome.ALLOW
    assert len(view.records) == 2


def test_view_denied_raises(doctor, patient):
    with pytest.raises(ConsentRequired):
        RecordService.view_for(actor=Actor.of(doctor), patient_code=patient.user_code)


def test_admin_summary_contains_no_clinical_text(doctor, admin_profile, patient):
    grant(doctor, patient)
    create(doctor, patient, RecordType.DIAGNOSIS, diagnosis="Confidential diagnosis")

    view = RecordService.view_for(
        actor=Actor.of(admin_profile),
        patient_code=patient.user_code,
        kind=ResourceKind.METADATA,
    )
    assert view.records == []
    assert view.summary["total_records"] == 1
    assert view.summary["records_by_type"][RecordType.DIAGNOSIS] == 1
    assert "Confidential diagnosis" not in str(view.summary)

    aggregate = RecordService.view_for(
        actor=Actor.of(admin_profile),
        patient_code=patient.user_code,
        kind=ResourceKind.AGGREGATE_DEIDENTIFIED,
    )
    assert "patient_code" not in aggregate.summary
