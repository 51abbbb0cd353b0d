# sc_core/audit/api/serializers.py
from rest_framework import serializers

from sc_core.audit.models import AccessEvent, AuditEvent


class AuditEventSerializer(serializers.ModelSerializer):
    # Keep API field name "timestamp", but map it to real model field "occurred_at"
    timestamp = serializers.DateTimeField(source="occurred_at", read_only=True)

    class Meta:
        model = AuditEvent
        fields = [
            "id",
            "entity_type",
            "entity_id",
            "event_code",
            "actor_code",
            "timestamp",
            "metadata",
        ]
        read_only_fields = fields


class AccessEventSerializer(serializers.ModelSerializer):
    event_id = serializers.UUIDField(source="id", read_only=True)

    class Meta:
        model = AccessEvent
        fields = [
            "event_id",
            "actor_code",
            "actor_role",
            "target_patient_code",
            "resource",
            "action",
            "outcome",
            "decision",
            "reason",
            "timestamp",
        ]
        read_only_fields = fields
