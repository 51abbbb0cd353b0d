import pyotp
import pytest
from django.utils.timezone import now
from rest_framework.test import APIClient

pytestmark = pytest.mark.django_db


def login(client, profile):
    return client.post(
        "/api/v1/auth/login/",
        {"username": profile.user.username, "password": "pass12345"},
        format="json",
    )


def test_login_sets_cookies_and_me_works(patient):
    client = APIClient()
    r = login(client, patient)
    assert r.status_code == 200, r.data
    assert "sc_access" in r.cookies
    assert "sc_refresh" in r.cookies

    r = client.get("/api/v1/me/")
    assert r.status_code == 200, r.data
    assert r.data["user_id"] == patient.user_code
    assert r.data["role"] == "PATIENT"


def test_bad_password_is_rejected(patient):
    r = APIClient().post(
        "/api/v1/auth/login/",
        {"username": patient.user.username, "password": "wrong"},
        format="json",
    )
    assert r.status_code == 401
    assert r.data["error"]["code"] == "authentication_failed"


def test_anonymized_account_token_is_rejected(patient):
    client = APIClient()
    login(client, patient)

    patient.anonymized_at = now()
    patient.save(update_fields=["anonymized_at"])

    r = client.get("/api/v1/me/")
    assert r.status_code == 401


def test_refresh_and_logout(patient):
    client = APIClient()
    login(client, patient)

    r = client.post("/api/v1/auth/refresh/")
    assert r.status_code == 200, r.data

    r = client.post("/api/v1/auth/logout/")
    assert r.status_code == 200
    assert r.cookies["sc_access"].value == ""


def test_me_patch_blocked_when_locked(client_for, patient):
    patient.account_locked = True
    patient.save(update_fields=["account_locked"])

    r = client_for(patient).patch("/api/v1/me/", {"phone": "555"}, format="json")
    assert r.status_code == 423
    assert r.data["error"]["code"] == "ACCOUNT_LOCKED"


def test_mfa_setup_flow_over_api(client_for, patient):
    client = client_for(patient)

    r = client.post("/api/v1/mfa/setup/")
    assert r.status_code == 200
    secret = r.data["secret"]

    r = client.post("/api/v1/mfa/verify-setup/", {"code": "000000"}, format="json")
    assert r.status_code == 400
    assert r.data["error"]["code"] == "INVALID_CODE"

    r = client.post("/api/v1/mfa/verify-setup/", {"code": pyotp.TOTP(secret).now()}, format="json")
    assert r.status_code == 200
    assert r.data["mfa_enabled"] is True

    r = client.get("/api/v1/mfa/status/")
    assert r.data == {"mfa_enabled": True, "setup_pending": False}


def test_refresh_with_invalid_cookie_is_rejected(db):
    client = APIClient()
    client.cookies["sc_refresh"] = "not-a-token"

    r = client.post("/api/v1/auth/refresh/")
    assert r.status_code == 401
