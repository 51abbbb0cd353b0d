from rest_framework import serializers

from sc_core.collaboration.models import AccessScope, Collaboration


class CollaborationSerializer(serializers.ModelSerializer):
    collaboration_id = serializers.UUIDField(source="id", read_only=True)
    patient_id = serializers.CharField(source="patient.user_code", read_only=True)
    requesting_doctor_id = serializers.CharField(source="requesting_doctor.user_code", read_only=True)
    consulting_doctor_id = serializers.CharField(source="consulting_doctor.user_code", read_only=True)

    class Meta:
        model = Collaboration
        fields = [
            "collaboration_id",
            "patient_id",
            "requesting_doctor_id",
            "consulting_doctor_id",
            "access_scope",
            "status",
            "reason",
            "created_at",
            "responded_at",
            "expires_at",
            "revoked_at",
        ]
        read_only_fields = fields


class CollaborationRequestSerializer(serializers.Serializer):
    patient_id = serializers.CharField(max_length=16)
    consulting_doctor_id = serializers.CharField(max_length=16)
    access_scope = serializers.ChoiceField(choices=AccessScope.choices, default=AccessScope.SUMMARY)
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    expires_at = serializers.DateTimeField(required=False, allow_null=True, default=None)
