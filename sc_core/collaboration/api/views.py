# sc_core/collaboration/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from sc_core.collaboration.api.serializers import CollaborationRequestSerializer, CollaborationSerializer
from sc_core.collaboration.services import CollaborationService
from sc_core.common.permissions import IsDoctorRole
from sc_core.iam.actor import actor_from_request


class CollaborationListCreateView(APIView):
    permission_classes = [IsDoctorRole]

    @extend_schema(tags=["Collaboration"], responses={200: CollaborationSerializer(many=True)})
    def get(self, request):
        actor = actor_from_request(request)
        CollaborationService.expire_stale(consulting_doctor_code=actor.user_code)
        rows = CollaborationService.list_for_doctor(doctor_code=actor.user_code)
        return Response(CollaborationSerializer(rows, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Collaboration"],
        request=CollaborationRequestSerializer,
        responses={201: CollaborationSerializer, 403: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT},
    )
    def post(self, request):
        actor = actor_from_request(request)

        ser = CollaborationRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        collab = CollaborationService.request(
            actor=actor,
            patient_code=data["patient_id"],
            consulting_doctor_code=data["consulting_doctor_id"],
            access_scope=data["access_scope"],
            reason=data["reason"],
            expires_at=data["expires_at"],
        )
        return Response(CollaborationSerializer(collab).data, status=status.HTTP_201_CREATED)


class CollaborationAcceptView(APIView):
    permission_classes = [IsDoctorRole]

    @extend_schema(tags=["Collaboration"], request=None, responses={200: CollaborationSerializer})
    def post(self, request, collaboration_id):
        collab = CollaborationService.accept(actor=actor_from_request(request), collaboration_id=collaboration_id)
        return Response(CollaborationSerializer(collab).data, status=status.HTTP_200_OK)


class CollaborationDeclineView(APIView):
    permission_classes = [IsDoctorRole]

    @extend_schema(tags=["Collaboration"], request=None, responses={200: CollaborationSerializer})
    def post(self, request, collaboration_id):
        collab = CollaborationService.decline(actor=actor_from_request(request), collaboration_id=collaboration_id)
        return Response(CollaborationSerializer(collab).data, status=status.HTTP_200_OK)


class CollaborationRevokeView(APIView):
    """
    Either doctor or the patient may revoke.
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Collaboration"], request=None, responses={200: CollaborationSerializer})
    def post(self, request, collaboration_id):
        collab = CollaborationService.revoke(actor=actor_from_request(request), collaboration_id=collaboration_id)
        return Response(CollaborationSerializer(collab).data, status=status.HTTP_200_OK)
