import pytest

from sc_core.access.engine import AccessDecisionEngine
from sc_core.access.scopes import ResourceKind
from sc_core.audit.models import AccessEvent, AuditEvent
from sc_core.audit.services import AuditService
from sc_core.iam.actor import Actor

pytestmark = pytest.mark.django_db


def test_audit_events_are_append_only():
    AuditService.log(event_code="test.event", entity_type="Thing", entity_id=1, actor_code="A001")
    event = AuditEvent.objects.get(event_code="test.event")
    assert event.entity_id == "1"

    event.metadata = {"tampered": True}
    with pytest.raises(ValueError):
        event.save()
    with pytest.raises(ValueError):
        event.delete()


def test_record_access_failure_is_swallowed(monkeypatch, caplog):
    def _explode(**kwargs):
        raise RuntimeError("audit store down")

    monkeypatch.setattr(AccessEvent.objects, "create", _explode)

    result = AuditService.record_access(
        actor_code="D002",
        actor_role="DOCTOR",
        target_patient_code="P005",
        resource="RECORDS",
        action="READ",
        decision="DENY",
    )
    assert result is None
    assert "Access audit write failed" in caplog.text


def test_admin_lists_and_filters_access_events(client_for, admin_profile, doctor, nurse, patient):
    AccessDecisionEngine.decide(Actor.of(doctor), patient.user_code, ResourceKind.DIAGNOSIS)
    AccessDecisionEngine.decide(Actor.of(nurse), patient.user_code, ResourceKind.VITALS)

    r = client_for(admin_profile).get("/api/v1/audit/access-events/", {"outcome": "DENIED"})
    assert r.status_code == 200, r.data
    assert r.data["count"] == 1
    assert r.data["results"][0]["actor_code"] == doctor.user_code
    assert r.data["results"][0]["reason"] == "CONSENT_REQUIRED"

    r = client_for(admin_profile).get("/api/v1/audit/events/", {"event_code": "iam.user_registered"})
    assert r.status_code == 200
    assert r.data["count"] == 4


def test_audit_endpoints_are_admin_only(client_for, doctor):
    assert client_for(doctor).get("/api/v1/audit/events/").status_code == 403
    assert client_for(doctor).get("/api/v1/audit/access-events/").status_code == 403
