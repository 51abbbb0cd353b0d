# sc_core/iam/api/mfa.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from sc_core.iam.actor import actor_from_request
from sc_core.iam.api.serializers import MfaCodeSerializer, MfaSetupResponseSerializer, MfaStatusSerializer
from sc_core.iam.services.mfa import MfaService


def _profile(request):
    actor_from_request(request)
    return request.user.sc_profile


class MfaStatusView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: MfaStatusSerializer}, tags=["MFA"])
    def get(self, request):
        profile = _profile(request)
        return Response(
            {"mfa_enabled": profile.mfa_enabled, "setup_pending": bool(profile.mfa_pending_secret)},
            status=status.HTTP_200_OK,
        )


class MfaSetupView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: MfaSetupResponseSerializer}, tags=["MFA"])
    def post(self, request):
        data = MfaService.begin_setup(_profile(request))
        return Response(data, status=status.HTTP_200_OK)


class MfaVerifySetupView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=MfaCodeSerializer, responses={200: MfaStatusSerializer}, tags=["MFA"])
    def post(self, request):
        ser = MfaCodeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        profile = MfaService.confirm_setup(_profile(request), ser.validated_data["code"])
        return Response({"mfa_enabled": profile.mfa_enabled, "setup_pending": False}, status=status.HTTP_200_OK)


class MfaDisableView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=MfaCodeSerializer, responses={200: MfaStatusSerializer}, tags=["MFA"])
    def post(self, request):
        ser = MfaCodeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        profile = MfaService.disable(_profile(request), ser.validated_data["code"])
        return Response({"mfa_enabled": profile.mfa_enabled, "setup_pending": False}, status=status.HTTP_200_OK)
