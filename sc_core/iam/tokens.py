# sc_core/iam/tokens.py
from __future__ import annotations

from rest_framework_simplejwt.serializers import TokenObtainPairSerializer


class ProfileTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Adds the healthcare identity claims (`user_code`, `role`) to issued tokens.
    """

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        profile = getattr(user, "sc_profile", None)
        if profile is not None:
            token["user_code"] = profile.user_code
            token["role"] = profile.role
        return token
