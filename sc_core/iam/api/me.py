# sc_core/iam/api/me.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from sc_core.iam.actor import actor_from_request
from sc_core.iam.api.serializers import ProfileSerializer, ProfileUpdateSerializer
from sc_core.iam.services.identity import IdentityService


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: ProfileSerializer}, tags=["IAM"])
    def get(self, request):
        actor_from_request(request)
        return Response(ProfileSerializer(request.user.sc_profile).data, status=status.HTTP_200_OK)

    @extend_schema(request=ProfileUpdateSerializer, responses={200: ProfileSerializer}, tags=["IAM"])
    def patch(self, request):
        actor = actor_from_request(request)

        ser = ProfileUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        profile = IdentityService.update_profile(actor=actor, changes=dict(ser.validated_data))
        return Response(ProfileSerializer(profile).data, status=status.HTTP_200_OK)
