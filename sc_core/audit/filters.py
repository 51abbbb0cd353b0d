# sc_core/audit/filters.py
from __future__ import annotations

import django_filters

from sc_core.audit.models import AccessEvent, AuditEvent


class AuditEventFilter(django_filters.FilterSet):
    occurred_after = django_filters.IsoDateTimeFilter(field_name="occurred_at", lookup_expr="gte")
    occurred_before = django_filters.IsoDateTimeFilter(field_name="occurred_at", lookup_expr="lte")

    class Meta:
        model = AuditEvent
        fields = ["event_code", "entity_type", "entity_id", "actor_code"]


class AccessEventFilter(django_filters.FilterSet):
    after = django_filters.IsoDateTimeFilter(field_name="timestamp", lookup_expr="gte")
    before = django_filters.IsoDateTimeFilter(field_name="timestamp", lookup_expr="lte")

    class Meta:
        model = AccessEvent
        fields = ["actor_code", "target_patient_code", "resource", "outcome", "reason"]
