import pytest

from sc_core.consent.services import ConsentLedger
from sc_core.iam.actor import Actor

pytestmark = pytest.mark.django_db


def test_request_accept_and_list(client_for, doctor, consultant, patient):
    consent = ConsentLedger.request(actor=Actor.of(doctor), patient_code=patient.user_code)
    ConsentLedger.grant(actor=Actor.of(patient), consent_id=consent.id)

    r = client_for(doctor).post(
        "/api/v1/collaboration/",
        {
            "patient_id": patient.user_code,
            "consulting_doctor_id": consultant.user_code,
            "access_scope": "LAB_REPORTS",
            "reason": "Second opinion",
        },
        format="json",
    )
    assert r.status_code == 201, r.data
    collab_id = r.data["collaboration_id"]

    r = client_for(consultant).post(f"/api/v1/collaboration/{collab_id}/accept/", {}, format="json")
    assert r.status_code == 200, r.data
    assert r.data["status"] == "ACCEPTED"

    r = client_for(consultant).get("/api/v1/collaboration/")
    assert [c["collaboration_id"] for c in r.data] == [collab_id]


def test_request_without_consent_is_403(client_for, doctor, consultant, patient):
    r = client_for(doctor).post(
        "/api/v1/collaboration/",
        {"patient_id": patient.user_code, "consulting_doctor_id": consultant.user_code},
        format="json",
    )
    assert r.status_code == 403
    assert r.data["error"]["code"] == "CONSENT_REQUIRED"
