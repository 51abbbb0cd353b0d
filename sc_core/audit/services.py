# sc_core/audit/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.db import transaction

from sc_core.audit.models import AccessEvent, AccessOutcome, AuditEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditRecord:
    event_code: str
    entity_type: str
    entity_id: str
    actor_code: str
    metadata: Dict[str, Any]


class AuditService:
    """
    Central audit writer.

    `log` is called inside the transaction of the transition it describes, so the
    audit row commits (or rolls back) together with the state change.
    `record_access` is the access-decision sink: a failure there is logged and
    swallowed, because an audit outage must never turn into a different decision.
    """

    @staticmethod
    @transaction.atomic
    def log(
        *,
        event_code: str,
        entity_type: str,
        entity_id: Any,
        actor_code: str | None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditRecord:
        metadata = metadata or {}

        AuditEvent.objects.create(
            event_code=event_code,
            entity_type=entity_type,
            entity_id=str(entity_id),
            actor_code=actor_code or "",
            metadata=metadata,
        )

        return AuditRecord(
            event_code=event_code,
            entity_type=entity_type,
            entity_id=str(entity_id),
            actor_code=actor_code or "",
            metadata=metadata,
        )

    @staticmethod
    def record_access(
        *,
        actor_code: str,
        actor_role: str,
        target_patient_code: str,
        resource: str,
        action: str,
        decision: str,
        reason: str = "",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AccessEvent | None:
        outcome = AccessOutcome.DENIED if decision == "DENY" else AccessOutcome.SUCCESS
        try:
            # savepoint: a failed insert must not poison the caller's transaction
            with transaction.atomic():
                return AccessEvent.objects.create(
                    actor_code=actor_code,
                    actor_role=actor_role,
                    target_patient_code=target_patient_code,
                    resource=resource,
                    action=action,
                    outcome=outcome,
                    decision=decision,
                    reason=reason or "",
                    metadata=metadata or {},
                )
        except Exception:
            logger.exception(
                "Access audit write failed (actor=%s patient=%s resource=%s decision=%s)",
                actor_code,
                target_patient_code,
                resource,
                decision,
            )
            return None
