# sc_core/records/services.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from django.db import transaction
from django.db.models import Count, Max

from sc_core.access.engine import AccessDecisionEngine, Action, Decision, raise_for_denial
from sc_core.access.scopes import RECORD_TYPE_KIND, ResourceKind
from sc_core.audit.services import AuditService
from sc_core.common.errors import AccountLocked, InvalidState
from sc_core.iam.actor import Actor
from sc_core.iam.models import UserProfile
from sc_core.records.models import MedicalRecord, RecordType


@dataclass(frozen=True)
class RecordView:
    decision: Decision
    records: list[MedicalRecord]
    summary: dict[str, Any] | None = None


def metadata_summary(patient: UserProfile) -> dict[str, Any]:
    """
    Counts and timestamps only. No clinical text leaves this function.
    """
    qs = MedicalRecord.objects.filter(patient=patient)
    by_type = {row["record_type"]: row["n"] for row in qs.values("record_type").annotate(n=Count("id"))}
    return {
        "patient_code": patient.user_code,
        "total_records": sum(by_type.values()),
        "records_by_type": {t: by_type.get(t, 0) for t in RecordType.values},
        "last_record_at": qs.aggregate(last=Max("created_at"))["last"],
        "account_locked": patient.account_locked,
    }


class RecordService:
    @staticmethod
    def create_record(
        *,
        actor: Actor,
        patient_code: str,
        record_type: str,
        title: str,
        diagnosis: str = "",
        details: str = "",
        prescription: str = "",
    ) -> MedicalRecord:
        if record_type not in RecordType.values:
            raise InvalidState(f"Unknown record type: {record_type}")

        # decided outside the write transaction so a DENY stays on the access log
        decision = AccessDecisionEngine.decide(actor, patient_code, RECORD_TYPE_KIND[record_type], Action.WRITE)
        raise_for_denial(decision)

        with transaction.atomic():
            # re-checked under the row lock taken by deletion confirmation
            patient = UserProfile.objects.select_for_update().get(user_code=patient_code)
            if patient.account_locked:
                raise AccountLocked()

            record = MedicalRecord.objects.create(
                patient=patient,
                created_by=UserProfile.objects.get(user_code=actor.user_code),
                record_type=record_type,
                title=title,
                diagnosis=diagnosis,
                details=details,
                prescription=prescription,
            )

            AuditService.log(
                event_code="record.created",
                entity_type="MedicalRecord",
                entity_id=record.id,
                actor_code=actor.user_code,
                metadata={"patient_code": patient_code, "record_type": record_type},
            )
        return record

    @staticmethod
    def view_for(*, actor: Actor, patient_code: str, kind: str = ResourceKind.RECORDS) -> RecordView:
        """
        Engine-filtered view of one patient's records. Raises on DENY.
        """
        decision = raise_for_denial(AccessDecisionEngine.decide(actor, patient_code, kind))

        if decision.metadata_only:
            summary = metadata_summary(UserProfile.objects.get(user_code=patient_code))
            if kind == ResourceKind.AGGREGATE_DEIDENTIFIED:
                for key in ("patient_code", "account_locked"):
                    summary.pop(key)
            return RecordView(decision=decision, records=[], summary=summary)

        ids = list(decision.visible_record_ids or ())
        records = list(
            MedicalRecord.objects.select_related("created_by").filter(id__in=ids).order_by("-created_at")
        )
        return RecordView(decision=decision, records=records)

    @staticmethod
    def mine(*, actor: Actor) -> RecordView:
        return RecordService.view_for(actor=actor, patient_code=actor.user_code)


