import pyotp
import pytest

from sc_core.audit.models import AuditEvent
from sc_core.common.errors import InvalidCode, InvalidState
from sc_core.iam.services.mfa import MfaService, verify_totp
from sc_core.tests.helpers import enable_mfa, totp_now

pytestmark = pytest.mark.django_db


def test_setup_then_confirm_enables_mfa(patient):
    data = MfaService.begin_setup(patient)
    assert data["provisioning_uri"].startswith("otpauth://totp/")

    with pytest.raises(InvalidCode):
        MfaService.confirm_setup(patient, "000000")
    patient.refresh_from_db()
    assert patient.mfa_enabled is False

    MfaService.confirm_setup(patient, pyotp.TOTP(data["secret"]).now())
    patient.refresh_from_db()
    assert patient.mfa_enabled is True
    assert patient.mfa_secret == data["secret"]
    assert patient.mfa_pending_secret == ""
    assert AuditEvent.objects.filter(event_code="iam.mfa_enabled").count() == 1


def test_confirm_without_setup_is_invalid_state(patient):
    with pytest.raises(InvalidState):
        MfaService.confirm_setup(patient, "123456")


def test_setup_refused_when_enabled(patient):
    enable_mfa(patient)
    with pytest.raises(InvalidState):
        MfaService.begin_setup(patient)


def test_disable_requires_valid_code(patient):
    enable_mfa(patient)

    with pytest.raises(InvalidCode):
        MfaService.disable(patient, "abc")

    MfaService.disable(patient, totp_now(patient))
    patient.refresh_from_db()
    assert patient.mfa_enabled is False
    assert patient.mfa_secret == ""


def test_verify_totp_rejects_garbage():
    secret = pyotp.random_base32()
    assert verify_totp(secret, pyotp.TOTP(secret).now())
    assert verify_totp(secret, " ".join(pyotp.TOTP(secret).now()))
    assert not verify_totp(secret, "")
    assert not verify_totp("", "123456")
    assert not verify_totp(secret, "12ab56")
