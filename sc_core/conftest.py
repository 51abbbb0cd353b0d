import itertools

import pytest
from rest_framework.test import APIClient

from sc_core.iam.models import Role
from sc_core.iam.services.identity import IdentityService

_seq = itertools.count(1)


@pytest.fixture
def make_profile(db):
    def _make(role=Role.PATIENT, *, user_code=None, care_unit="", email=None, **extra):
        n = next(_seq)
        return IdentityService.register(
            role=role,
            username=f"{role.lower()}-{n}",
            password="pass12345",
            email=email if email is not None else f"user{n}@example.com",
            first_name=extra.pop("first_name", "Test"),
            last_name=extra.pop("last_name", f"User{n}"),
            care_unit=care_unit,
            user_code=user_code,
            **extra,
        )
    return _make


@pytest.fixture
def patient(make_profile):
    return make_profile(Role.PATIENT, user_code="P005", care_unit="ward-a")


@pytest.fixture
def other_patient(make_profile):
    return make_profile(Role.PATIENT, user_code="P006", care_unit="ward-b")


@pytest.fixture
def doctor(make_profile):
    return make_profile(Role.DOCTOR, user_code="D002", specialty="Cardiology")


@pytest.fixture
def consultant(make_profile):
    return make_profile(Role.DOCTOR, user_code="D003", specialty="Radiology")


@pytest.fixture
def nurse(make_profile):
    return make_profile(Role.NURSE, user_code="N001", care_unit="ward-a")


@pytest.fixture
def lab_tech(make_profile):
    return make_profile(Role.LAB_TECHNICIAN, user_code="L001")


@pytest.fixture
def admin_profile(make_profile):
    return make_profile(Role.ADMIN, user_code="A001")


@pytest.fixture
def client_for():
    def _client(profile):
        client = APIClient()
        client.force_authenticate(user=profile.user)
        return client
    return _client
