# sc_core/iam/auth.py

from __future__ import annotations

from django.conf import settings
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed

from sc_core.iam.models import UserStatus


class CookieOrHeaderJWTAuthentication(JWTAuthentication):
    """
    Authenticate using:
      1) Authorization: Bearer <access>
      2) HttpOnly cookie containing access token

    Suspended or anonymized identities are rejected even with a valid token.
    Locked accounts still authenticate so the owner can cancel a pending deletion.
    """

    def authenticate(self, request):
        # 1) Prefer Authorization header
        header = self.get_header(request)
        if header:
            auth_result = super().authenticate(request)
            if auth_result is None:
                return None
            user, token = auth_result
            self._ensure_usable_profile(user)
            return user, token

        # 2) Cookie access token
        cookie_name = settings.SIMPLE_JWT.get("AUTH_COOKIE", "sc_access")
        raw_token = request.COOKIES.get(cookie_name)
        if not raw_token:
            return None

        validated_token = self.get_validated_token(raw_token)
        user = self.get_user(validated_token)

        self._ensure_usable_profile(user)
        return user, validated_token

    @staticmethod
    def _ensure_usable_profile(user) -> None:
        profile = getattr(user, "sc_profile", None)
        if profile is None:
            return
        if profile.is_anonymized or profile.status == UserStatus.SUSPENDED:
            raise AuthenticationFailed("Account is not active.", code="account_inactive")
