from datetime import timedelta

import pytest
from django.utils.timezone import now

from sc_core.access.engine import AccessDecisionEngine, Action, DenyReason, Outcome, raise_for_denial
from sc_core.access.scopes import ResourceKind
from sc_core.audit.models import AccessEvent
from sc_core.collaboration.models import AccessScope
from sc_core.collaboration.services import CollaborationService
from sc_core.common.errors import ConsentRequired, OutOfUnit
from sc_core.consent.models import Consent, ConsentStatus
from sc_core.consent.services import ConsentLedger
from sc_core.iam.actor import Actor
from sc_core.records.models import MedicalRecord, RecordType

pytestmark = pytest.mark.django_db


def add_record(patient, author, record_type, title="entry"):
    return MedicalRecord.objects.create(
        patient=patient,
        created_by=author,
        record_type=record_type,
        title=title,
        diagnosis="Hypertension" if record_type == RecordType.DIAGNOSIS else "",
    )


def grant(doctor, patient, **kwargs):
    consent = ConsentLedger.request(actor=Actor.of(doctor), patient_code=patient.user_code)
    return ConsentLedger.grant(actor=Actor.of(patient), consent_id=consent.id, **kwargs)


@pytest.fixture
def chart(patient, doctor, nurse):
    return {
        "diagnosis": add_record(patient, doctor, RecordType.DIAGNOSIS),
        "lab": add_record(patient, doctor, RecordType.LAB_RESULT),
        "vitals": add_record(patient, nurse, RecordType.VITALS),
        "note": add_record(patient, nurse, RecordType.GENERAL),
    }


def test_doctor_without_consent_is_denied_consent_required(doctor, patient, chart):
    d = AccessDecisionEngine.decide(Actor.of(doctor), patient.user_code, ResourceKind.DIAGNOSIS)
    assert d.outcome == Outcome.DENY
    assert d.reason == DenyReason.CONSENT_REQUIRED
    assert d.visible_record_ids is None

    with pytest.raises(ConsentRequired):
        raise_for_denial(d)


def test_patient_sees_all_own_records_regardless_of_consent(doctor, patient, chart):
    consent = ConsentLedger.request(actor=Actor.of(doctor), patient_code=patient.user_code)
    ConsentLedger.deny(actor=Actor.of(patient), consent_id=consent.id)

    for kind in (ResourceKind.RECORDS, ResourceKind.DIAGNOSIS):
        d = AccessDecisionEngine.decide(Actor.of(patient), patient.user_code, kind)
        assert d.outcome == Outcome.ALLOW
        assert d.hidden_count == 0

    d = AccessDecisionEngine.decide(Actor.of(patient), patient.user_code, ResourceKind.RECORDS)
    assert set(d.visible_record_ids) == {r.id for r in chart.values()}


def test_patient_cannot_read_another_patient(patient, other_patient):
    d = AccessDecisionEngine.decide(Actor.of(other_patient), patient.user_code)
    assert d.outcome == Outcome.DENY
    assert d.reason == DenyReason.ROLE_FORBIDDEN


def test_doctor_with_consent_is_allowed(doctor, patient, chart):
    grant(doctor, patient)
    d = AccessDecisionEngine.decide(Actor.of(doctor), patient.user_code, ResourceKind.DIAGNOSIS)
    assert d.outcome == Outcome.ALLOW
    assert list(d.visible_record_ids) == [chart["diagnosis"].id]


def test_expired_consent_denies_and_is_persisted_as_expired(doctor, patient, chart):
    t0 = now()
    consent = grant(doctor, patient, expires_at=t0 + timedelta(hours=1))

    later = t0 + timedelta(hours=2)
    assert Consent.objects.get(id=consent.id).status == ConsentStatus.GRANTED

    d = AccessDecisionEngine.decide(Actor.of(doctor), patient.user_code, ResourceKind.DIAGNOSIS, at=later)
    assert d.outcome == Outcome.DENY
    assert d.reason == DenyReason.CONSENT_REQUIRED
    assert Consent.objects.get(id=consent.id).status == ConsentStatus.EXPIRED


def test_denied_consent_still_denies_until_a_new_request(doctor, patient, chart):
    consent = ConsentLedger.request(actor=Actor.of(doctor), patient_code=patient.user_code)
    ConsentLedger.deny(actor=Actor.of(patient), consent_id=consent.id)

    d = AccessDecisionEngine.decide(Actor.of(doctor), patient.user_code, ResourceKind.DIAGNOSIS)
    assert d.outcome == Outcome.DENY
    assert d.reason == DenyReason.CONSENT_REQUIRED


def test_nurse_never_sees_diagnosis_and_never_consults_ledger(nurse, patient, chart, monkeypatch):
    def _boom(**kwargs):
        raise AssertionError("ledger consulted")

    monkeypatch.setattr(ConsentLedger, "check_active", staticmethod(_boom))

    d = AccessDecisionEngine.decide(Actor.of(nurse), patient.user_code, ResourceKind.DIAGNOSIS)
    assert d.outcome == Outcome.DENY
    assert d.reason == DenyReason.ROLE_FORBIDDEN


def test_nurse_same_unit_vitals_allowed(nurse, patient, chart):
    d = AccessDecisionEngine.decide(Actor.of(nurse), patient.user_code, ResourceKind.VITALS)
    assert d.outcome == Outcome.ALLOW
    assert list(d.visible_record_ids) == [chart["vitals"].id]


def test_nurse_records_view_is_partial(nurse, patient, chart):
    d = AccessDecisionEngine.decide(Actor.of(nurse), patient.user_code, ResourceKind.RECORDS)
    assert d.outcome == Outcome.PARTIAL
    assert set(d.visible_record_ids) == {chart["vitals"].id, chart["note"].id}
    assert d.hidden_count == 2


def test_nurse_other_unit_is_out_of_unit(nurse, other_patient):
    d = AccessDecisionEngine.decide(Actor.of(nurse), other_patient.user_code, ResourceKind.VITALS)
    assert d.outcome == Outcome.DENY
    assert d.reason == DenyReason.OUT_OF_UNIT

    with pytest.raises(OutOfUnit):
        raise_for_denial(d)


def test_admin_gets_metadata_only(admin_profile, patient, chart):
    d = AccessDecisionEngine.decide(Actor.of(admin_profile), patient.user_code, ResourceKind.METADATA)
    assert d.outcome == Outcome.ALLOW
    assert d.metadata_only is True
    assert d.visible_record_ids is None

    d = AccessDecisionEngine.decide(Actor.of(admin_profile), patient.user_code, ResourceKind.DIAGNOSIS)
    assert d.outcome == Outcome.DENY
    assert d.reason == DenyReason.ROLE_FORBIDDEN


def test_admin_aggregate_kind_is_metadata_only(admin_profile, patient):
    d = AccessDecisionEngine.decide(Actor.of(admin_profile), patient.user_code, ResourceKind.AGGREGATE_DEIDENTIFIED)
    assert d.outcome == Outcome.ALLOW
    assert d.metadata_only is True


def test_lab_technician_reads_nothing_but_writes_lab_results(lab_tech, patient, chart):
    d = AccessDecisionEngine.decide(Actor.of(lab_tech), patient.user_code, ResourceKind.LAB_RESULT)
    assert d.outcome == Outcome.DENY

    d = AccessDecisionEngine.decide(Actor.of(lab_tech), patient.user_code, ResourceKind.LAB_RESULT, Action.WRITE)
    assert d.outcome == Outcome.ALLOW

    d = AccessDecisionEngine.decide(Actor.of(lab_tech), patient.user_code, ResourceKind.DIAGNOSIS, Action.WRITE)
    assert d.outcome == Outcome.DENY
    assert d.reason == DenyReason.ROLE_FORBIDDEN


def test_locked_patient_blocks_writes(doctor, patient):
    grant(doctor, patient)
    patient.account_locked = True
    patient.save(update_fields=["account_locked"])

    d = AccessDecisionEngine.decide(Actor.of(doctor), patient.user_code, ResourceKind.DIAGNOSIS, Action.WRITE)
    assert d.outcome == Outcome.DENY
    assert d.reason == DenyReason.ACCOUNT_LOCKED


def test_consulting_doctor_sees_only_delegated_scope(doctor, consultant, patient, chart):
    grant(doctor, patient)
    collab = CollaborationService.request(
        actor=Actor.of(doctor),
        patient_code=patient.user_code,
        consulting_doctor_code=consultant.user_code,
        access_scope=AccessScope.LAB_REPORTS,
    )
    CollaborationService.accept(actor=Actor.of(consultant), collaboration_id=collab.id)

    d = AccessDecisionEngine.decide(Actor.of(consultant), patient.user_code, ResourceKind.RECORDS)
    assert d.outcome == Outcome.PARTIAL
    assert list(d.visible_record_ids) == [chart["lab"].id]
    assert d.hidden_count == 3
    assert d.scopes == (AccessScope.LAB_REPORTS,)


def test_unknown_patient_is_denied(doctor):
    d = AccessDecisionEngine.decide(Actor.of(doctor), "P999")
    assert d.outcome == Outcome.DENY
    assert d.reason == DenyReason.PATIENT_NOT_FOUND


def test_unknown_kind_raises(doctor, patient):
    with pytest.raises(ValueError):
        AccessDecisionEngine.decide(Actor.of(doctor), patient.user_code, "BILLING")


def test_every_decision_writes_one_access_event(doctor, patient, nurse):
    AccessDecisionEngine.decide(Actor.of(doctor), patient.user_code, ResourceKind.DIAGNOSIS)
    AccessDecisionEngine.decide(Actor.of(nurse), patient.user_code, ResourceKind.VITALS)

    events = AccessEvent.objects.filter(target_patient_code=patient.user_code)
    assert events.count() == 2

    denied = events.get(actor_code=doctor.user_code)
    assert denied.decision == Outcome.DENY
    assert denied.outcome == "DENIED"
    assert denied.reason == DenyReason.CONSENT_REQUIRED
    assert events.get(actor_code=nurse.user_code).decision == Outcome.ALLOW
