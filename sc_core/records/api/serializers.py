# sc_core/records/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from sc_core.access.scopes import ResourceKind
from sc_core.records.models import MedicalRecord, RecordType


class MedicalRecordSerializer(serializers.ModelSerializer):
    record_id = serializers.UUIDField(source="id", read_only=True)
    patient_id = serializers.CharField(source="patient.user_code", read_only=True)
    created_by = serializers.CharField(source="created_by.user_code", read_only=True)

    class Meta:
        model = MedicalRecord
        fields = [
            "record_id",
            "patient_id",
            "created_by",
            "record_type",
            "title",
            "diagnosis",
            "details",
            "prescription",
            "created_at",
        ]
        read_only_fields = fields


class MedicalRecordCreateSerializer(serializers.Serializer):
    patient_id = serializers.CharField(max_length=16)
    record_type = serializers.ChoiceField(choices=RecordType.choices)
    title = serializers.CharField(max_length=255)
    diagnosis = serializers.CharField(required=False, allow_blank=True, default="")
    details = serializers.CharField(required=False, allow_blank=True, default="")
    prescription = serializers.CharField(required=False, allow_blank=True, default="")


class RecordQuerySerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=ResourceKind.choices, required=False)
