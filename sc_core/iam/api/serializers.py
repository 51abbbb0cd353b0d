# sc_core/iam/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from sc_core.iam.models import UserProfile


class LoginRequestSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField()


class DetailResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()


class ProfileSerializer(serializers.ModelSerializer):
    user_id = serializers.CharField(source="user_code", read_only=True)

    class Meta:
        model = UserProfile
        fields = [
            "user_id",
            "role",
            "first_name",
            "last_name",
            "email",
            "phone",
            "specialty",
            "care_unit",
            "mfa_enabled",
            "account_locked",
            "status",
        ]
        read_only_fields = ["user_id", "role", "care_unit", "mfa_enabled", "account_locked", "status"]


class ProfileUpdateSerializer(serializers.Serializer):
    first_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    last_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)
    specialty = serializers.CharField(required=False, allow_blank=True, max_length=128)


class MfaCodeSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=16)


class MfaSetupResponseSerializer(serializers.Serializer):
    secret = serializers.CharField()
    provisioning_uri = serializers.CharField()


class MfaStatusSerializer(serializers.Serializer):
    mfa_enabled = serializers.BooleanField()
    setup_pending = serializers.BooleanField()
