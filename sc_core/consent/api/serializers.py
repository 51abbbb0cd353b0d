from rest_framework import serializers

from sc_core.consent.models import Consent


class ConsentSerializer(serializers.ModelSerializer):
    consent_id = serializers.UUIDField(source="id", read_only=True)
    patient_id = serializers.CharField(source="patient.user_code", read_only=True)
    doctor_id = serializers.CharField(source="doctor.user_code", read_only=True)
    doctor_name = serializers.CharField(source="doctor.full_name", read_only=True)
    doctor_specialty = serializers.CharField(source="doctor.specialty", read_only=True)

    class Meta:
        model = Consent
        fields = [
            "consent_id",
            "patient_id",
            "doctor_id",
            "doctor_name",
            "doctor_specialty",
            "status",
            "requested_at",
            "responded_at",
            "expires_at",
            "revoked_at",
        ]
        read_only_fields = fields


class ConsentRequestSerializer(serializers.Serializer):
    patient_id = serializers.CharField(max_length=16)


class ConsentGrantSerializer(serializers.Serializer):
    expires_at = serializers.DateTimeField(required=False, allow_null=True, default=None)


class ConsentCheckSerializer(serializers.Serializer):
    has_consent = serializers.BooleanField()
    consent = ConsentSerializer(allow_null=True)


class ConsentPendingStatusSerializer(serializers.Serializer):
    has_pending = serializers.BooleanField()
    consent = ConsentSerializer(allow_null=True)
