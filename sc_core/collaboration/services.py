# sc_core/collaboration/services.py

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Q, QuerySet
from django.utils.timezone import now

from sc_core.audit.services import AuditService
from sc_core.collaboration.models import (
    OPEN_COLLABORATION_STATUSES,
    AccessScope,
    Collaboration,
    CollaborationStatus,
)
from sc_core.common.errors import (
    ConsentRequired,
    DuplicatePending,
    InvalidState,
    NotFound,
    NotOwner,
    RoleForbidden,
)
from sc_core.common.events import publish_on_commit
from sc_core.consent.services import ConsentLedger
from sc_core.iam.actor import SYSTEM_ACTOR_CODE, Actor
from sc_core.iam.models import Role
from sc_core.iam.services.identity import get_patient, get_profile


class CollaborationService:
    """
    Delegated, scope-limited grants between doctors.

    PENDING -> ACCEPTED | DECLINED (consulting doctor)
    PENDING/ACCEPTED -> REVOKED (either doctor or the patient; or when the
    underlying patient consent is revoked)
    ACCEPTED -> EXPIRED (time, evaluated lazily)
    """

    @staticmethod
    def _get(collaboration_id) -> Collaboration:
        try:
            return (
                Collaboration.objects.select_for_update()
                .select_related("patient", "requesting_doctor", "consulting_doctor")
                .get(id=collaboration_id)
            )
        except (Collaboration.DoesNotExist, ValueError, DjangoValidationError):
            raise NotFound("Collaboration not found.")

    @staticmethod
    def _log(collab: Collaboration, event_code: str, actor_code: str) -> None:
        AuditService.log(
            event_code=event_code,
            entity_type="Collaboration",
            entity_id=collab.id,
            actor_code=actor_code,
            metadata={
                "patient_code": collab.patient.user_code,
                "requesting_doctor_code": collab.requesting_doctor.user_code,
                "consulting_doctor_code": collab.consulting_doctor.user_code,
                "access_scope": collab.access_scope,
                "status": collab.status,
            },
        )

    @staticmethod
    def _close(qs: QuerySet[Collaboration], *, status: str, actor_code: str, at) -> int:
        closed = 0
        for collab in qs.select_for_update().select_related("patient", "requesting_doctor", "consulting_doctor"):
            collab.status = status
            if status == CollaborationStatus.REVOKED:
                collab.revoked_at = at
            collab.save(update_fields=["status", "revoked_at", "updated_at"])
            CollaborationService._log(collab, f"collaboration.{status.lower()}", actor_code)
            closed += 1
        return closed

    # -------------------------
    # Requesting doctor
    # -------------------------
    @staticmethod
    @transaction.atomic
    def request(
        *,
        actor: Actor,
        patient_code: str,
        consulting_doctor_code: str,
        access_scope: str = AccessScope.SUMMARY,
        reason: str = "",
        expires_at=None,
        at=None,
    ) -> Collaboration:
        if not actor.is_doctor:
            raise RoleForbidden("Only doctors can request a consultation.")
        if access_scope not in AccessScope.values:
            raise InvalidState(f"Unknown access scope: {access_scope}")
        if consulting_doctor_code == actor.user_code:
            raise InvalidState("A doctor cannot consult themselves.")

        patient = get_patient(patient_code)
        consultant = get_profile(consulting_doctor_code)
        if consultant.role != Role.DOCTOR:
            raise RoleForbidden(f"{consulting_doctor_code} is not a doctor.")

        if not ConsentLedger.check_active(doctor_code=actor.user_code, patient_code=patient.user_code, at=at):
            raise ConsentRequired("Patient consent is required before sharing records with a colleague.")

        try:
            with transaction.atomic():
                collab = Collaboration.objects.create(
                    patient=patient,
                    requesting_doctor=get_profile(actor.user_code),
                    consulting_doctor=consultant,
                    access_scope=access_scope,
                    reason=reason,
                    expires_at=expires_at,
                )
        except IntegrityError:
            raise DuplicatePending("An open consultation with this colleague already exists for this patient.")

        CollaborationService._log(collab, "collaboration.requested", actor.user_code)
        publish_on_commit(
            "collaboration.requested",
            {
                "collaboration_id": str(collab.id),
                "patient_code": patient.user_code,
                "requesting_doctor_code": actor.user_code,
                "consulting_doctor_code": consultant.user_code,
                "access_scope": access_scope,
            },
        )
        return collab

    # -------------------------
    # Consulting doctor
    # -------------------------
    @staticmethod
    @transaction.atomic
    def respond(*, actor: Actor, collaboration_id, accept: bool, at=None) -> Collaboration:
        collab = CollaborationService._get(collaboration_id)

        if collab.consulting_doctor.user_code != actor.user_code:
            raise NotOwner("Only the consulting doctor may answer this request.")
        if collab.status != CollaborationStatus.PENDING:
            raise InvalidState(details={"status": collab.status})

        collab.status = CollaborationStatus.ACCEPTED if accept else CollaborationStatus.DECLINED
        collab.responded_at = at or now()
        collab.save(update_fields=["status", "responded_at", "updated_at"])
        CollaborationService._log(collab, f"collaboration.{collab.status.lower()}", actor.user_code)
        return collab

    @staticmethod
    def accept(*, actor: Actor, collaboration_id, at=None) -> Collaboration:
        return CollaborationService.respond(actor=actor, collaboration_id=collaboration_id, accept=True, at=at)

    @staticmethod
    def decline(*, actor: Actor, collaboration_id, at=None) -> Collaboration:
        return CollaborationService.respond(actor=actor, collaboration_id=collaboration_id, accept=False, at=at)

    # -------------------------
    # Either doctor or the patient
    # -------------------------
    @staticmethod
    @transaction.atomic
    def revoke(*, actor: Actor, collaboration_id, at=None) -> Collaboration:
        collab = CollaborationService._get(collaboration_id)

        parties = {
            collab.patient.user_code,
            collab.requesting_doctor.user_code,
            collab.consulting_doctor.user_code,
        }
        if actor.user_code not in parties:
            raise NotOwner("Only the patient or a participating doctor may revoke this consultation.")
        if collab.status not in OPEN_COLLABORATION_STATUSES:
            raise InvalidState(details={"status": collab.status})

        collab.status = CollaborationStatus.REVOKED
        collab.revoked_at = at or now()
        collab.save(update_fields=["status", "revoked_at", "updated_at"])
        CollaborationService._log(collab, "collaboration.revoked", actor.user_code)
        return collab

    @staticmethod
    @transaction.atomic
    def revoke_derived(*, patient_code: str, requesting_doctor_code: str, actor_code: str, at=None) -> int:
        qs = Collaboration.objects.filter(
            patient__user_code=patient_code,
            requesting_doctor__user_code=requesting_doctor_code,
            status__in=OPEN_COLLABORATION_STATUSES,
        )
        return CollaborationService._close(qs, status=CollaborationStatus.REVOKED, actor_code=actor_code, at=at or now())

    @staticmethod
    @transaction.atomic
    def close_all_for_patient(*, patient_code: str, at=None) -> int:
        qs = Collaboration.objects.filter(patient__user_code=patient_code, status__in=OPEN_COLLABORATION_STATUSES)
        return CollaborationService._close(
            qs,
            status=CollaborationStatus.REVOKED,
            actor_code=SYSTEM_ACTOR_CODE,
            at=at or now(),
        )

    # -------------------------
    # Queries
    # -------------------------
    @staticmethod
    @transaction.atomic
    def expire_stale(*, at=None, consulting_doctor_code: str | None = None, patient_code: str | None = None) -> int:
        at = at or now()
        qs = Collaboration.objects.filter(
            status=CollaborationStatus.ACCEPTED,
            expires_at__isnull=False,
            expires_at__lte=at,
        )
        if consulting_doctor_code:
            qs = qs.filter(consulting_doctor__user_code=consulting_doctor_code)
        if patient_code:
            qs = qs.filter(patient__user_code=patient_code)
        return CollaborationService._close(qs, status=CollaborationStatus.EXPIRED, actor_code=SYSTEM_ACTOR_CODE, at=at)

    @staticmethod
    def active_scopes(*, consulting_doctor_code: str, patient_code: str, at=None) -> list[str]:
        """
        Scopes currently delegated to `consulting_doctor_code` for this patient.
        A grant only counts while its requesting doctor still holds patient consent.
        """
        CollaborationService.expire_stale(at=at, consulting_doctor_code=consulting_doctor_code, patient_code=patient_code)

        rows = Collaboration.objects.select_related("requesting_doctor").filter(
            consulting_doctor__user_code=consulting_doctor_code,
            patient__user_code=patient_code,
            status=CollaborationStatus.ACCEPTED,
        )

        scopes: list[str] = []
        backed: dict[str, bool] = {}
        for collab in rows:
            requester = collab.requesting_doctor.user_code
            if requester not in backed:
                backed[requester] = ConsentLedger.check_active(doctor_code=requester, patient_code=patient_code, at=at)
            if backed[requester] and collab.access_scope not in scopes:
                scopes.append(collab.access_scope)
        return scopes

    @staticmethod
    def list_for_doctor(*, doctor_code: str) -> QuerySet[Collaboration]:
        return (
            Collaboration.objects.select_related("patient", "requesting_doctor", "consulting_doctor")
            .filter(Q(requesting_doctor__user_code=doctor_code) | Q(consulting_doctor__user_code=doctor_code))
            .order_by("-created_at")
        )
