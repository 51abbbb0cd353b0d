import json

import pytest
from django.test import RequestFactory
from rest_framework.test import APIClient

from sc_core.common.middleware import RequestIdMiddleware

pytestmark = pytest.mark.django_db


def test_middleware_honours_inbound_request_id():
    rf = RequestFactory()
    req = rf.get("/api/v1/me/", HTTP_X_REQUEST_ID="abc-123")

    mw = RequestIdMiddleware(get_response=lambda r: None)
    assert mw.process_request(req) is None
    assert req.request_id == "abc-123"


def test_domain_error_rendered_as_envelope(client_for, doctor):
    r = client_for(doctor).post(
        "/api/v1/consent/request/",
        {"patient_id": "P999"},
        format="json",
        HTTP_X_REQUEST_ID="req-42",
    )
    assert r.status_code == 404
    assert r["X-Request-Id"] == "req-42"

    body = json.loads(r.content.decode("utf-8"))
    assert body["error"]["code"] == "NOT_FOUND"
    assert "P999" in body["error"]["message"]
    assert body["error"]["request_id"] == "req-42"


def test_validation_error_rendered_as_envelope(client_for, doctor):
    r = client_for(doctor).post("/api/v1/consent/request/", {}, format="json")
    assert r.status_code == 400

    body = json.loads(r.content.decode("utf-8"))
    assert body["error"]["code"] == "validation_error"
    assert "patient_id" in body["error"]["details"]


def test_unauthenticated_request_rendered_as_envelope(db):
    r = APIClient().get("/api/v1/deletion/status/")
    assert r.status_code == 401
    assert r.data["error"]["code"] == "not_authenticated"
