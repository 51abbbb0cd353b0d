import pytest

from sc_core.consent.models import Consent, ConsentStatus

pytestmark = pytest.mark.django_db


def test_request_grant_check_flow(client_for, doctor, patient):
    doc = client_for(doctor)
    pat = client_for(patient)

    r = doc.post("/api/v1/consent/request/", {"patient_id": patient.user_code}, format="json")
    assert r.status_code == 201, r.data
    consent_id = r.data["consent_id"]
    assert r.data["status"] == ConsentStatus.PENDING

    r = pat.get("/api/v1/consent/pending/")
    assert r.status_code == 200
    assert [c["consent_id"] for c in r.data] == [consent_id]

    r = pat.post(f"/api/v1/consent/grant/{consent_id}/", {}, format="json")
    assert r.status_code == 200, r.data
    assert r.data["status"] == ConsentStatus.GRANTED

    r = doc.get(f"/api/v1/consent/check/{patient.user_code}/")
    assert r.status_code == 200
    assert r.data["has_consent"] is True
    assert r.data["consent"]["consent_id"] == consent_id

    r = pat.get("/api/v1/consent/active/")
    assert [c["consent_id"] for c in r.data] == [consent_id]


def test_duplicate_request_returns_409_with_stable_code(client_for, doctor, patient):
    doc = client_for(doctor)
    doc.post("/api/v1/consent/request/", {"patient_id": patient.user_code}, format="json")

    r = doc.post("/api/v1/consent/request/", {"patient_id": patient.user_code}, format="json")
    assert r.status_code == 409
    assert r.data["error"]["code"] == "DUPLICATE_PENDING"
    assert r.data["error"]["request_id"]
    assert Consent.objects.count() == 1


def test_foreign_patient_cannot_grant(client_for, doctor, patient, other_patient):
    r = client_for(doctor).post("/api/v1/consent/request/", {"patient_id": patient.user_code}, format="json")
    consent_id = r.data["consent_id"]

    r = client_for(other_patient).post(f"/api/v1/consent/grant/{consent_id}/", {}, format="json")
    assert r.status_code == 403
    assert r.data["error"]["code"] == "NOT_OWNER"


def test_revoke_pending_is_not_granted(client_for, doctor, patient):
    r = client_for(doctor).post("/api/v1/consent/request/", {"patient_id": patient.user_code}, format="json")

    r = client_for(patient).post(f"/api/v1/consent/revoke/{r.data['consent_id']}/", {}, format="json")
    assert r.status_code == 409
    assert r.data["error"]["code"] == "NOT_GRANTED"


def test_patients_cannot_request_consent(client_for, patient, other_patient):
    r = client_for(patient).post("/api/v1/consent/request/", {"patient_id": other_patient.user_code}, format="json")
    assert r.status_code == 403


def test_pending_status_and_requested_list(client_for, doctor, patient):
    doc = client_for(doctor)
    doc.post("/api/v1/consent/request/", {"patient_id": patient.user_code}, format="json")

    r = doc.get(f"/api/v1/consent/pending-status/{patient.user_code}/")
    assert r.status_code == 200
    assert r.data["has_pending"] is True

    r = doc.get("/api/v1/consent/requested/")
    assert r.status_code == 200
    assert [c["patient_id"] for c in r.data] == [patient.user_code]
