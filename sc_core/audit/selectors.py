# sc_core/audit/selectors.py
from __future__ import annotations

from django.db.models import QuerySet

from sc_core.audit.models import AccessEvent, AuditEvent


def list_audit_events(
    *,
    entity_type: str | None = None,
    entity_id: str | None = None,
    event_code: str | None = None,
    actor_code: str | None = None,
) -> QuerySet[AuditEvent]:
    qs = AuditEvent.objects.all()

    if entity_type:
        qs = qs.filter(entity_type=entity_type)
    if entity_id:
        qs = qs.filter(entity_id=entity_id)
    if event_code:
        qs = qs.filter(event_code=event_code)
    if actor_code:
        qs = qs.filter(actor_code=actor_code)

    return qs.order_by("-occurred_at")


def access_events_qs() -> QuerySet[AccessEvent]:
    return AccessEvent.objects.all().order_by("-timestamp")
