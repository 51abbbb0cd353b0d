import pytest

from sc_core.deletion.models import DeletionRequest
from sc_core.notifications.models import Notification
from sc_core.tests.helpers import enable_mfa, totp_now

pytestmark = pytest.mark.django_db


def test_initiate_requires_mfa(client_for, patient):
    r = client_for(patient).post("/api/v1/deletion/initiate/", {}, format="json")
    assert r.status_code == 400
    assert r.data["error"]["code"] == "MFA_REQUIRED"
    assert DeletionRequest.objects.count() == 0


def test_initiate_verify_status_cancel(client_for, patient, django_capture_on_commit_callbacks):
    enable_mfa(patient)
    client = client_for(patient)

    with django_capture_on_commit_callbacks(execute=True):
        r = client.post(
            "/api/v1/deletion/initiate/",
            {"device_fingerprint": "fp-1"},
            format="json",
            HTTP_USER_AGENT="pytest",
            REMOTE_ADDR="10.1.2.3",
        )
    assert r.status_code == 201, r.data
    assert r.data["mfa_required"] is True
    assert r.data["request"]["status"] == "PENDING_MFA"

    req = DeletionRequest.objects.get()
    assert req.user_agent == "pytest"
    assert req.ip_address == "10.1.2.3"

    r = client.post("/api/v1/deletion/initiate/", {}, format="json")
    assert r.status_code == 409
    assert r.data["error"]["code"] == "EXISTING_REQUEST"

    r = client.post("/api/v1/deletion/verify-mfa/", {"mfa_code": "123"}, format="json")
    assert r.status_code == 400
    assert r.data["error"]["code"] == "INVALID_CODE"

    r = client.post("/api/v1/deletion/verify-mfa/", {"mfa_code": totp_now(patient)}, format="json")
    assert r.status_code == 200, r.data
    assert r.data["status"] == "MFA_VERIFIED"

    r = client.get("/api/v1/deletion/status/")
    assert r.status_code == 200
    assert r.data["has_pending_deletion"] is True
    assert r.data["mfa_verified"] is True
    assert r.data["account_locked"] is True
    assert r.data["days_remaining"] == 7

    r = client.post("/api/v1/deletion/cancel/", {}, format="json")
    assert r.status_code == 200
    assert r.data["status"] == "CANCELLED"

    r = client.post("/api/v1/deletion/cancel/", {}, format="json")
    assert r.status_code == 404
    assert r.data["error"]["code"] == "NOT_FOUND"


def test_notification_feeds_and_ack(client_for, patient, django_capture_on_commit_callbacks):
    enable_mfa(patient)
    client = client_for(patient)
    with django_capture_on_commit_callbacks(execute=True):
        client.post("/api/v1/deletion/initiate/", {}, format="json")

    r = client.get("/api/v1/deletion/notifications/")
    assert r.status_code == 200
    assert [n["stage"] for n in r.data] == ["INITIAL"]
    assert all(n["channel"] == "IN_APP" for n in r.data)

    r = client.post(f"/api/v1/deletion/notifications/{r.data[0]['id']}/read/", {}, format="json")
    assert r.status_code == 200
    assert r.data["is_read"] is True

    r = client.get("/api/v1/deletion/auth-notifications/")
    assert [n["channel"] for n in r.data] == ["AUTHENTICATOR"]

    r = client.post(f"/api/v1/deletion/auth-notifications/{r.data[0]['id']}/ack/", {}, format="json")
    assert r.status_code == 200
    assert r.data["acknowledged_at"] is not None


def test_cannot_ack_someone_elses_notification(client_for, patient, other_patient, django_capture_on_commit_callbacks):
    enable_mfa(patient)
    with django_capture_on_commit_callbacks(execute=True):
        client_for(patient).post("/api/v1/deletion/initiate/", {}, format="json")
    notif = Notification.objects.get(recipient=patient, channel="AUTHENTICATOR")

    r = client_for(other_patient).post(f"/api/v1/deletion/auth-notifications/{notif.id}/ack/", {}, format="json")
    assert r.status_code == 404


def test_admin_pending_list(client_for, patient, admin_profile):
    enable_mfa(patient)
    client_for(patient).post("/api/v1/deletion/initiate/", {}, format="json")

    r = client_for(admin_profile).get("/api/v1/deletion/admin/pending/")
    assert r.status_code == 200
    assert len(r.data) == 1
    assert r.data[0]["user_id"] == patient.user_code
    assert r.data[0]["user_email"] == patient.email
    assert r.data[0]["days_remaining"] == 7

    r = client_for(admin_profile).get("/api/v1/deletion/admin/history/")
    assert r.status_code == 200
    assert r.data["count"] == 1

    r = client_for(patient).get("/api/v1/deletion/admin/pending/")
    assert r.status_code == 403
