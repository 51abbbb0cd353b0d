from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command

from sc_core.deletion.models import CancellationReason, DeletionRequest, DeletionStatus
from sc_core.deletion.services import DeletionWorkflow
from sc_core.deletion.sweep import run_sweep
from sc_core.iam.actor import Actor
from sc_core.notifications.models import Notification, NotificationStage
from sc_core.tests.helpers import enable_mfa, totp_now

pytestmark = pytest.mark.django_db


@pytest.fixture
def confirmed_request(patient):
    enable_mfa(patient)
    DeletionWorkflow.initiate(actor=Actor.of(patient))
    return DeletionWorkflow.verify_mfa(actor=Actor.of(patient), code=totp_now(patient))


def test_reminder_is_sent_once_inside_window(confirmed_request, patient, django_capture_on_commit_callbacks):
    at = confirmed_request.scheduled_deletion_date - timedelta(hours=23)

    with django_capture_on_commit_callbacks(execute=True):
        first = run_sweep(now=at)
    second = run_sweep(now=at + timedelta(hours=1))

    assert first.reminded == 1
    assert second.reminded == 0
    assert Notification.objects.filter(recipient=patient, stage=NotificationStage.REMINDER_24H).count() == 2
    confirmed_request.refresh_from_db()
    assert confirmed_request.reminder_sent_at == at
    assert confirmed_request.status == DeletionStatus.MFA_VERIFIED


def test_no_reminder_outside_window(confirmed_request):
    result = run_sweep(now=confirmed_request.scheduled_deletion_date - timedelta(days=3))
    assert result.reminded == 0
    assert result.finalized == 0


def test_due_request_is_finalized(confirmed_request, patient):
    result = run_sweep(now=confirmed_request.scheduled_deletion_date + timedelta(minutes=1))

    assert result.finalized == 1
    confirmed_request.refresh_from_db()
    assert confirmed_request.status == DeletionStatus.COMPLETED
    patient.refresh_from_db()
    assert patient.is_anonymized


def test_unconfirmed_request_times_out(patient):
    enable_mfa(patient)
    req = DeletionWorkflow.initiate(actor=Actor.of(patient))

    assert run_sweep(now=req.requested_at + timedelta(hours=47)).timed_out == 0
    result = run_sweep(now=req.requested_at + timedelta(hours=49))

    assert result.timed_out == 1
    req.refresh_from_db()
    assert req.status == DeletionStatus.CANCELLED
    assert req.cancellation_reason == CancellationReason.MFA_TIMEOUT


def test_one_failing_row_does_not_stop_the_sweep(confirmed_request, make_profile, monkeypatch):
    other = enable_mfa(make_profile())
    DeletionWorkflow.initiate(actor=Actor.of(other), at=confirmed_request.requested_at)
    DeletionWorkflow.verify_mfa(actor=Actor.of(other), code=totp_now(other))

    original = DeletionWorkflow.finalize_request

    def flaky(req, *, at=None):
        if req.id == confirmed_request.id:
            raise RuntimeError("storage hiccup")
        return original(req, at=at)

    monkeypatch.setattr(DeletionWorkflow, "finalize_request", staticmethod(flaky))
    result = run_sweep(now=confirmed_request.scheduled_deletion_date + timedelta(minutes=1))

    assert result.failed == 1
    assert result.finalized == 1
    assert DeletionRequest.objects.get(id=confirmed_request.id).status == DeletionStatus.MFA_VERIFIED


def test_management_command_runs_one_sweep(confirmed_request):
    out = StringIO()
    call_command("run_deletion_sweep", stdout=out)
    assert "Finalized: 0" in out.getvalue()
