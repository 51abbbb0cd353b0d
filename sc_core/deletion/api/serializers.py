from rest_framework import serializers

from sc_core.deletion.models import DeletionRequest


class InitiateDeletionSerializer(serializers.Serializer):
    device_fingerprint = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class VerifyDeletionMfaSerializer(serializers.Serializer):
    mfa_code = serializers.CharField(max_length=16)
    device_fingerprint = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class DeletionRequestSerializer(serializers.ModelSerializer):
    request_id = serializers.UUIDField(source="id", read_only=True)
    user_id = serializers.CharField(source="user.user_code", read_only=True)
    mfa_verified = serializers.BooleanField(read_only=True)

    class Meta:
        model = DeletionRequest
        fields = [
            "request_id",
            "user_id",
            "status",
            "requested_at",
            "scheduled_deletion_date",
            "mfa_verified",
            "mfa_verified_at",
            "account_locked",
            "reminder_sent_at",
            "cancelled_at",
            "cancellation_reason",
            "completed_at",
        ]
        read_only_fields = fields


class InitiateDeletionResponseSerializer(serializers.Serializer):
    mfa_required = serializers.BooleanField()
    request = DeletionRequestSerializer()


class DeletionStatusSerializer(serializers.Serializer):
    has_pending_deletion = serializers.BooleanField()
    request_id = serializers.UUIDField(allow_null=True)
    status = serializers.CharField(allow_null=True)
    days_remaining = serializers.IntegerField(allow_null=True)
    scheduled_deletion_date = serializers.DateTimeField(allow_null=True)
    mfa_verified = serializers.BooleanField()
    account_locked = serializers.BooleanField()


class PendingDeletionSerializer(serializers.Serializer):
    request_id = serializers.UUIDField()
    user_id = serializers.CharField()
    user_email = serializers.EmailField(allow_blank=True)
    status = serializers.CharField()
    requested_at = serializers.DateTimeField()
    scheduled_deletion_date = serializers.DateTimeField()
    days_remaining = serializers.IntegerField()
    mfa_verified = serializers.BooleanField()
