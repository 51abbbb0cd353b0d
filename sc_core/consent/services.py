# sc_core/consent/services.py

from __future__ import annotations

from datetime import timedelta

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils.timezone import now

from sc_core.audit.services import AuditService
from sc_core.common.conf import domain_setting
from sc_core.common.errors import (
    AlreadyGranted,
    DuplicatePending,
    InvalidState,
    NotFound,
    NotGranted,
    NotOwner,
    RoleForbidden,
)
from sc_core.common.events import publish_on_commit
from sc_core.consent.models import ACTIVE_CONSENT_STATUSES, Consent, ConsentStatus
from sc_core.consent.selectors import (
    consent_for_pair,
    granted_for_patient,
    pending_for_patient,
    requested_by_doctor,
)
from sc_core.iam.actor import SYSTEM_ACTOR_CODE, Actor
from sc_core.iam.models import UserProfile
from sc_core.iam.services.identity import get_patient, get_profile


class ConsentDecision:
    GRANT = "GRANT"
    DENY = "DENY"


class ConsentLedger:
    """
    Consent write-model and queries.

    Lifecycle:
      PENDING -> GRANTED -> REVOKED | EXPIRED
      PENDING -> DENIED
    Only the owning patient responds or revokes; time only expires. The doctor
    never mutates a row after creating it.

    Every mutation on a (doctor, patient) pair first locks the patient profile row,
    so a request racing a respond/revoke on the same pair is serialized. The
    conditional unique constraint is the last line behind that lock.
    """

    # -------------------------
    # Internal helpers
    # -------------------------
    @staticmethod
    def _lock_patient(patient: UserProfile) -> UserProfile:
        return UserProfile.objects.select_for_update().get(pk=patient.pk)

    @staticmethod
    def _get_owned(*, actor: Actor, consent_id) -> Consent:
        try:
            consent = Consent.objects.select_related("patient", "doctor").get(id=consent_id)
        except (Consent.DoesNotExist, ValueError, DjangoValidationError):
            raise NotFound("Consent not found.")

        if consent.patient.user_code != actor.user_code:
            raise NotOwner()

        ConsentLedger._lock_patient(consent.patient)
        return Consent.objects.select_for_update().select_related("patient", "doctor").get(id=consent.id)

    @staticmethod
    def _log(consent: Consent, event_code: str, actor_code: str, **extra) -> None:
        AuditService.log(
            event_code=event_code,
            entity_type="Consent",
            entity_id=consent.id,
            actor_code=actor_code,
            metadata={
                "patient_code": consent.patient.user_code,
                "doctor_code": consent.doctor.user_code,
                "status": consent.status,
                **extra,
            },
        )

    @staticmethod
    def expire_stale(*, at=None, patient_code: str | None = None, doctor_code: str | None = None) -> int:
        """
        Lazy expiry: GRANTED rows whose expires_at has passed become EXPIRED.
        Called on every read path that depends on an active grant.
        """
        at = at or now()
        qs = Consent.objects.filter(status=ConsentStatus.GRANTED, expires_at__isnull=False, expires_at__lte=at)
        if patient_code:
            qs = qs.filter(patient__user_code=patient_code)
        if doctor_code:
            qs = qs.filter(doctor__user_code=doctor_code)

        expired = 0
        with transaction.atomic():
            for consent in qs.select_related("patient", "doctor").select_for_update():
                consent.status = ConsentStatus.EXPIRED
                consent.save(update_fields=["status", "updated_at"])
                ConsentLedger._log(consent, "consent.expired", SYSTEM_ACTOR_CODE, expires_at=consent.expires_at.isoformat())
                expired += 1
        return expired

    # -------------------------
    # Request (doctor)
    # -------------------------
    @staticmethod
    @transaction.atomic
    def request(*, actor: Actor, patient_code: str, at=None) -> Consent:
        if not actor.is_doctor:
            raise RoleForbidden("Only doctors can request consent.")

        at = at or now()
        patient = ConsentLedger._lock_patient(get_patient(patient_code))
        doctor = get_profile(actor.user_code)

        ConsentLedger.expire_stale(at=at, patient_code=patient.user_code, doctor_code=doctor.user_code)

        existing = (
            Consent.objects.filter(patient=patient, doctor=doctor, status__in=ACTIVE_CONSENT_STATUSES)
            .select_for_update()
            .first()
        )
        if existing is not None:
            if existing.status == ConsentStatus.PENDING:
                raise DuplicatePending(details={"consent_id": str(existing.id)})
            raise AlreadyGranted(details={"consent_id": str(existing.id)})

        try:
            with transaction.atomic():
                consent = Consent.objects.create(
                    patient=patient,
                    doctor=doctor,
                    status=ConsentStatus.PENDING,
                    requested_at=at,
                )
        except IntegrityError:
            raise DuplicatePending()

        ConsentLedger._log(consent, "consent.requested", actor.user_code)
        publish_on_commit(
            "consent.requested",
            {
                "consent_id": str(consent.id),
                "patient_code": patient.user_code,
                "doctor_code": doctor.user_code,
            },
        )
        return consent

    # -------------------------
    # Respond / revoke (owning patient)
    # -------------------------
    @staticmethod
    @transaction.atomic
    def respond(*, actor: Actor, consent_id, decision: str, at=None, expires_at=None) -> Consent:
        if decision not in (ConsentDecision.GRANT, ConsentDecision.DENY):
            raise InvalidState(f"Unknown consent decision: {decision}")

        at = at or now()
        consent = ConsentLedger._get_owned(actor=actor, consent_id=consent_id)

        if consent.status != ConsentStatus.PENDING:
            raise InvalidState("Only a PENDING consent can be answered.", details={"status": consent.status})

        consent.responded_at = at
        if decision == ConsentDecision.GRANT:
            consent.status = ConsentStatus.GRANTED
            if expires_at is None:
                ttl_days = domain_setting("CONSENT_DEFAULT_TTL_DAYS")
                expires_at = at + timedelta(days=ttl_days) if ttl_days else None
            consent.expires_at = expires_at
            event_code = "consent.granted"
        else:
            consent.status = ConsentStatus.DENIED
            event_code = "consent.denied"

        consent.save(update_fields=["status", "responded_at", "expires_at", "updated_at"])
        ConsentLedger._log(consent, event_code, actor.user_code)
        return consent

    @staticmethod
    def grant(*, actor: Actor, consent_id, at=None, expires_at=None) -> Consent:
        return ConsentLedger.respond(
            actor=actor,
            consent_id=consent_id,
            decision=ConsentDecision.GRANT,
            at=at,
            expires_at=expires_at,
        )

    @staticmethod
    def deny(*, actor: Actor, consent_id, at=None) -> Consent:
        return ConsentLedger.respond(actor=actor, consent_id=consent_id, decision=ConsentDecision.DENY, at=at)

    @staticmethod
    def revoke(*, actor: Actor, consent_id, at=None) -> Consent:
        from sc_core.collaboration.services import CollaborationService

        at = at or now()
        with transaction.atomic():
            owned = ConsentLedger._get_owned(actor=actor, consent_id=consent_id)

        # committed on its own: a refused revoke must not roll the expiry back
        ConsentLedger.expire_stale(
            at=at,
            patient_code=owned.patient.user_code,
            doctor_code=owned.doctor.user_code,
        )

        with transaction.atomic():
            consent = ConsentLedger._get_owned(actor=actor, consent_id=owned.id)
            if consent.status != ConsentStatus.GRANTED:
                raise NotGranted(details={"status": consent.status})

            consent.status = ConsentStatus.REVOKED
            consent.revoked_at = at
            consent.save(update_fields=["status", "revoked_at", "updated_at"])
            ConsentLedger._log(consent, "consent.revoked", actor.user_code)

            # delegated grants die with the consent they were derived from
            CollaborationService.revoke_derived(
                patient_code=consent.patient.user_code,
                requesting_doctor_code=consent.doctor.user_code,
                actor_code=actor.user_code,
                at=at,
            )
        return consent

    @staticmethod
    @transaction.atomic
    def close_all_for_patient(*, patient_code: str, at=None) -> int:
        """
        Erasure path: GRANTED -> REVOKED, PENDING -> DENIED. Rows are kept.
        """
        at = at or now()
        closed = 0
        qs = (
            Consent.objects.select_for_update()
            .select_related("patient", "doctor")
            .filter(patient__user_code=patient_code, status__in=ACTIVE_CONSENT_STATUSES)
        )
        for consent in qs:
            if consent.status == ConsentStatus.GRANTED:
                consent.status = ConsentStatus.REVOKED
                consent.revoked_at = at
            else:
                consent.status = ConsentStatus.DENIED
                consent.responded_at = at
            consent.save(update_fields=["status", "revoked_at", "responded_at", "updated_at"])
            ConsentLedger._log(consent, "consent.closed_on_erasure", SYSTEM_ACTOR_CODE)
            closed += 1
        return closed

    # -------------------------
    # Queries
    # -------------------------
    @staticmethod
    def active_consent(*, doctor_code: str, patient_code: str, at=None) -> Consent | None:
        ConsentLedger.expire_stale(at=at, patient_code=patient_code, doctor_code=doctor_code)
        return (
            Consent.objects.select_related("patient", "doctor")
            .filter(doctor__user_code=doctor_code, patient__user_code=patient_code, status=ConsentStatus.GRANTED)
            .first()
        )

    @staticmethod
    def check_active(*, doctor_code: str, patient_code: str, at=None) -> bool:
        return ConsentLedger.active_consent(doctor_code=doctor_code, patient_code=patient_code, at=at) is not None

    @staticmethod
    def list_pending(*, patient_code: str):
        return pending_for_patient(patient_code)

    @staticmethod
    def list_active(*, patient_code: str, at=None):
        ConsentLedger.expire_stale(at=at, patient_code=patient_code)
        return granted_for_patient(patient_code)

    @staticmethod
    def list_for_doctor(*, doctor_code: str):
        return requested_by_doctor(doctor_code)

    @staticmethod
    def pending_status(*, doctor_code: str, patient_code: str) -> dict:
        pending = consent_for_pair(doctor_code=doctor_code, patient_code=patient_code, statuses=[ConsentStatus.PENDING])
        return {"has_pending": pending is not None, "consent": pending}
