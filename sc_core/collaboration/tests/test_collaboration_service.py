from datetime import timedelta

import pytest
from django.utils.timezone import now

from sc_core.collaboration.models import AccessScope, CollaborationStatus
from sc_core.collaboration.services import CollaborationService
from sc_core.common.errors import ConsentRequired, DuplicatePending, InvalidState, NotOwner, RoleForbidden
from sc_core.consent.services import ConsentLedger
from sc_core.iam.actor import Actor
from sc_core.notifications.models import Notification, NotificationTopic

pytestmark = pytest.mark.django_db


def grant(doctor, patient, **kwargs):
    consent = ConsentLedger.request(actor=Actor.of(doctor), patient_code=patient.user_code)
    return ConsentLedger.grant(actor=Actor.of(patient), consent_id=consent.id, **kwargs)


def open_collab(doctor, consultant, patient, scope=AccessScope.SUMMARY, **kwargs):
    return CollaborationService.request(
        actor=Actor.of(doctor),
        patient_code=patient.user_code,
        consulting_doctor_code=consultant.user_code,
        access_scope=scope,
        **kwargs,
    )


def test_request_requires_requester_consent(doctor, consultant, patient):
    with pytest.raises(ConsentRequired):
        open_collab(doctor, consultant, patient)


def test_consultant_must_be_a_doctor(doctor, nurse, patient):
    grant(doctor, patient)
    with pytest.raises(RoleForbidden):
        open_collab(doctor, nurse, patient)


def test_duplicate_open_collaboration_is_rejected(doctor, consultant, patient):
    grant(doctor, patient)
    open_collab(doctor, consultant, patient)
    with pytest.raises(DuplicatePending):
        open_collab(doctor, consultant, patient, scope=AccessScope.FULL)


def test_only_consulting_doctor_answers(doctor, consultant, patient):
    grant(doctor, patient)
    collab = open_collab(doctor, consultant, patient)

    with pytest.raises(NotOwner):
        CollaborationService.accept(actor=Actor.of(doctor), collaboration_id=collab.id)

    collab = CollaborationService.decline(actor=Actor.of(consultant), collaboration_id=collab.id)
    assert collab.status == CollaborationStatus.DECLINED

    with pytest.raises(InvalidState):
        CollaborationService.accept(actor=Actor.of(consultant), collaboration_id=collab.id)


def test_patient_may_revoke(doctor, consultant, patient, other_patient):
    grant(doctor, patient)
    collab = open_collab(doctor, consultant, patient)
    CollaborationService.accept(actor=Actor.of(consultant), collaboration_id=collab.id)

    with pytest.raises(NotOwner):
        CollaborationService.revoke(actor=Actor.of(other_patient), collaboration_id=collab.id)

    collab = CollaborationService.revoke(actor=Actor.of(patient), collaboration_id=collab.id)
    assert collab.status == CollaborationStatus.REVOKED
    assert CollaborationService.active_scopes(
        consulting_doctor_code=consultant.user_code,
        patient_code=patient.user_code,
    ) == []


def test_scopes_require_requester_consent_still_active(doctor, consultant, patient):
    t0 = now()
    grant(doctor, patient, expires_at=t0 + timedelta(days=1))
    collab = open_collab(doctor, consultant, patient, scope=AccessScope.PRESCRIPTIONS)
    CollaborationService.accept(actor=Actor.of(consultant), collaboration_id=collab.id)

    kwargs = {"consulting_doctor_code": consultant.user_code, "patient_code": patient.user_code}
    assert CollaborationService.active_scopes(at=t0, **kwargs) == [AccessScope.PRESCRIPTIONS]
    assert CollaborationService.active_scopes(at=t0 + timedelta(days=2), **kwargs) == []


def test_accepted_collaboration_expires_lazily(doctor, consultant, patient):
    t0 = now()
    grant(doctor, patient)
    collab = open_collab(doctor, consultant, patient, expires_at=t0 + timedelta(hours=1))
    CollaborationService.accept(actor=Actor.of(consultant), collaboration_id=collab.id)

    assert CollaborationService.active_scopes(
        consulting_doctor_code=consultant.user_code,
        patient_code=patient.user_code,
        at=t0 + timedelta(hours=2),
    ) == []
    collab.refresh_from_db()
    assert collab.status == CollaborationStatus.EXPIRED


def test_request_notifies_consultant(doctor, consultant, patient, django_capture_on_commit_callbacks):
    grant(doctor, patient)
    with django_capture_on_commit_callbacks(execute=True):
        collab = open_collab(doctor, consultant, patient)

    notif = Notification.objects.get(recipient=consultant, topic=NotificationTopic.COLLABORATION)
    assert notif.meta == {"collaboration_id": str(collab.id)}
