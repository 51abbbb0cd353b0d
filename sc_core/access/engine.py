# sc_core/access/engine.py
"""
Access decisions for patient data.

Rules are evaluated in a fixed order:
  1. a patient always sees their own records
  2. administrators get operational metadata only, never clinical text
  3. nurses get vitals and care notes for patients in their care unit, nothing else
  4. doctors need an active patient consent; a delegated consultation grant
     yields a PARTIAL view filtered to the delegated scopes
  5. lab technicians may create LAB_RESULT records and read nothing

Decisions are returned, never raised. Each call writes exactly one AccessEvent.
Callers that must refuse on DENY use `raise_for_denial`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from django.db import models

from sc_core.access.scopes import (
    ADMIN_KINDS,
    CLINICAL_KINDS,
    NURSE_KINDS,
    ResourceKind,
    ids_visible_under_scopes,
    records_of_kind,
)
from sc_core.audit.services import AuditService
from sc_core.collaboration.services import CollaborationService
from sc_core.common.errors import AccountLocked, ConsentRequired, NotFound, OutOfUnit, RoleForbidden
from sc_core.consent.services import ConsentLedger
from sc_core.iam.actor import Actor
from sc_core.iam.models import Role, UserProfile
from sc_core.records.models import RecordType

logger = logging.getLogger(__name__)


class Outcome(models.TextChoices):
    ALLOW = "ALLOW", "Allow"
    PARTIAL = "PARTIAL", "Partial"
    DENY = "DENY", "Deny"


class DenyReason(models.TextChoices):
    CONSENT_REQUIRED = "CONSENT_REQUIRED", "Patient consent required"
    ROLE_FORBIDDEN = "ROLE_FORBIDDEN", "Role not permitted"
    OUT_OF_UNIT = "OUT_OF_UNIT", "Patient outside care unit"
    PATIENT_NOT_FOUND = "PATIENT_NOT_FOUND", "Patient not found"
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED", "Account locked"


class Action(models.TextChoices):
    READ = "READ", "Read"
    WRITE = "WRITE", "Write"


@dataclass(frozen=True)
class Decision:
    outcome: str
    resource: str
    action: str = Action.READ
    reason: str | None = None
    message: str = ""
    visible_record_ids: tuple | None = None
    hidden_count: int | None = None
    metadata_only: bool = False
    scopes: tuple[str, ...] = field(default_factory=tuple)

    @property
    def allowed(self) -> bool:
        return self.outcome != Outcome.DENY

    def as_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome,
            "resource": self.resource,
            "action": self.action,
            "reason": self.reason,
            "message": self.message,
            "visible_record_ids": (
                [str(rid) for rid in self.visible_record_ids] if self.visible_record_ids is not None else None
            ),
            "hidden_count": self.hidden_count,
            "metadata_only": self.metadata_only,
            "scopes": list(self.scopes),
        }


DENIAL_ERRORS = {
    DenyReason.CONSENT_REQUIRED: ConsentRequired,
    DenyReason.ROLE_FORBIDDEN: RoleForbidden,
    DenyReason.OUT_OF_UNIT: OutOfUnit,
    DenyReason.PATIENT_NOT_FOUND: NotFound,
    DenyReason.ACCOUNT_LOCKED: AccountLocked,
}


def raise_for_denial(decision: Decision) -> Decision:
    if decision.allowed:
        return decision
    exc_class = DENIAL_ERRORS.get(decision.reason, RoleForbidden)
    raise exc_class(decision.message or None, details={"reason": decision.reason, "resource": decision.resource})


def _deny(kind: str, action: str, reason: str, message: str) -> Decision:
    return Decision(outcome=Outcome.DENY, resource=kind, action=action, reason=reason, message=message)


def _allow_kind(patient: UserProfile, kind: str, message: str) -> Decision:
    ids = tuple(records_of_kind(patient.id, kind).values_list("id", flat=True))
    return Decision(
        outcome=Outcome.ALLOW,
        resource=kind,
        visible_record_ids=ids,
        hidden_count=0,
        message=message,
    )


def _partial(patient: UserProfile, kind: str, visible: set, message: str, scopes=()) -> Decision:
    in_kind = list(records_of_kind(patient.id, kind).values_list("id", flat=True))
    shown = tuple(rid for rid in in_kind if rid in visible)
    return Decision(
        outcome=Outcome.PARTIAL,
        resource=kind,
        visible_record_ids=shown,
        hidden_count=len(in_kind) - len(shown),
        message=message,
        scopes=tuple(scopes),
    )


def _same_unit(nurse: UserProfile | None, patient: UserProfile) -> bool:
    return bool(nurse and nurse.care_unit and nurse.care_unit == patient.care_unit)


class AccessDecisionEngine:
    @staticmethod
    def decide(
        actor: Actor,
        target_patient_code: str,
        resource_kind: str = ResourceKind.RECORDS,
        action: str = Action.READ,
        *,
        at=None,
    ) -> Decision:
        if resource_kind not in ResourceKind.values:
            raise ValueError(f"Unknown resource kind: {resource_kind}")
        if action not in Action.values:
            raise ValueError(f"Unknown action: {action}")

        patient = UserProfile.objects.filter(user_code=target_patient_code, role=Role.PATIENT).first()
        if patient is None:
            decision = _deny(resource_kind, action, DenyReason.PATIENT_NOT_FOUND, "Patient not found.")
        elif action == Action.WRITE:
            decision = AccessDecisionEngine._evaluate_write(actor, patient, resource_kind, at=at)
        else:
            decision = AccessDecisionEngine._evaluate_read(actor, patient, resource_kind, at=at)

        AuditService.record_access(
            actor_code=actor.user_code,
            actor_role=actor.role,
            target_patient_code=target_patient_code,
            resource=resource_kind,
            action=action,
            decision=decision.outcome,
            reason=decision.reason or "",
            metadata={"hidden_count": decision.hidden_count, "scopes": list(decision.scopes)},
        )
        if not decision.allowed:
            logger.info(
                "Access denied: actor=%s role=%s patient=%s resource=%s action=%s reason=%s",
                actor.user_code,
                actor.role,
                target_patient_code,
                resource_kind,
                action,
                decision.reason,
            )
        return decision

    # -------------------------
    # Reads
    # -------------------------
    @staticmethod
    def _evaluate_read(actor: Actor, patient: UserProfile, kind: str, *, at=None) -> Decision:
        read = Action.READ

        if actor.role == Role.PATIENT:
            if actor.user_code == patient.user_code:
                return _allow_kind(patient, kind, "Own records.")
            return _deny(kind, read, DenyReason.ROLE_FORBIDDEN, "Patients can only view their own records.")

        if actor.role == Role.ADMIN:
            if kind in ADMIN_KINDS:
                return Decision(
                    outcome=Outcome.ALLOW,
                    resource=kind,
                    metadata_only=True,
                    message="Operational metadata only.",
                )
            return _deny(kind, read, DenyReason.ROLE_FORBIDDEN, "Administrators cannot view clinical content.")

        if actor.role == Role.NURSE:
            if kind not in NURSE_KINDS and kind != ResourceKind.RECORDS:
                return _deny(kind, read, DenyReason.ROLE_FORBIDDEN, "Nurses cannot view this record type.")
            nurse = UserProfile.objects.filter(user_code=actor.user_code).first()
            if not _same_unit(nurse, patient):
                return _deny(kind, read, DenyReason.OUT_OF_UNIT, "Patient is not under your care unit.")
            if kind == ResourceKind.RECORDS:
                visible = set(
                    records_of_kind(patient.id, kind)
                    .filter(record_type__in=[RecordType.VITALS, RecordType.GENERAL])
                    .values_list("id", flat=True)
                )
                return _partial(patient, kind, visible, "Vitals and care notes only.")
            return _allow_kind(patient, kind, "Care unit access.")

        if actor.role == Role.DOCTOR:
            if kind not in CLINICAL_KINDS:
                return _deny(kind, read, DenyReason.ROLE_FORBIDDEN, "Not a clinical resource.")
            if ConsentLedger.check_active(doctor_code=actor.user_code, patient_code=patient.user_code, at=at):
                return _allow_kind(patient, kind, "Patient consent granted.")

            scopes = CollaborationService.active_scopes(
                consulting_doctor_code=actor.user_code,
                patient_code=patient.user_code,
                at=at,
            )
            if scopes:
                visible = ids_visible_under_scopes(patient.id, scopes)
                return _partial(patient, kind, visible, "Shared through a consultation.", scopes=scopes)

            return _deny(kind, read, DenyReason.CONSENT_REQUIRED, "Patient consent is required.")

        if actor.role == Role.LAB_TECHNICIAN:
            return _deny(kind, read, DenyReason.ROLE_FORBIDDEN, "Lab technicians cannot view existing records.")

        return _deny(kind, read, DenyReason.ROLE_FORBIDDEN, "Role not permitted.")

    # -------------------------
    # Writes (record creation)
    # -------------------------
    @staticmethod
    def _evaluate_write(actor: Actor, patient: UserProfile, kind: str, *, at=None) -> Decision:
        write = Action.WRITE
        author = UserProfile.objects.filter(user_code=actor.user_code).first()

        if patient.account_locked or (author is not None and author.account_locked):
            return _deny(kind, write, DenyReason.ACCOUNT_LOCKED, "Account is locked pending deletion.")

        if kind not in CLINICAL_KINDS or kind == ResourceKind.RECORDS:
            return _deny(kind, write, DenyReason.ROLE_FORBIDDEN, "Not a writable record type.")

        allowed = Decision(outcome=Outcome.ALLOW, resource=kind, action=write, message="Write permitted.")

        if actor.role == Role.LAB_TECHNICIAN:
            if kind == ResourceKind.LAB_RESULT:
                return allowed
            return _deny(kind, write, DenyReason.ROLE_FORBIDDEN, "Lab technicians may only create lab results.")

        if actor.role == Role.NURSE:
            if kind not in NURSE_KINDS:
                return _deny(kind, write, DenyReason.ROLE_FORBIDDEN, "Nurses may only record vitals and care notes.")
            if not _same_unit(author, patient):
                return _deny(kind, write, DenyReason.OUT_OF_UNIT, "Patient is not under your care unit.")
            return allowed

        if actor.role == Role.DOCTOR:
            if ConsentLedger.check_active(doctor_code=actor.user_code, patient_code=patient.user_code, at=at):
                return allowed
            return _deny(kind, write, DenyReason.CONSENT_REQUIRED, "Patient consent is required.")

        return _deny(kind, write, DenyReason.ROLE_FORBIDDEN, "Only clinical staff may create records.")
