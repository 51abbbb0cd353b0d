# sc_core/consent/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from sc_core.common.permissions import IsDoctorRole, IsPatientRole
from sc_core.consent.api.serializers import (
    ConsentCheckSerializer,
    ConsentGrantSerializer,
    ConsentPendingStatusSerializer,
    ConsentRequestSerializer,
    ConsentSerializer,
)
from sc_core.consent.services import ConsentLedger
from sc_core.iam.actor import actor_from_request


# -------------------------
# Doctor
# -------------------------
class ConsentRequestView(APIView):
    permission_classes = [IsDoctorRole]

    @extend_schema(
        tags=["Consent"],
        request=ConsentRequestSerializer,
        responses={201: ConsentSerializer, 404: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT},
    )
    def post(self, request):
        actor = actor_from_request(request)

        ser = ConsentRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        consent = ConsentLedger.request(actor=actor, patient_code=ser.validated_data["patient_id"])
        return Response(ConsentSerializer(consent).data, status=status.HTTP_201_CREATED)


class ConsentCheckView(APIView):
    permission_classes = [IsDoctorRole]

    @extend_schema(tags=["Consent"], responses={200: ConsentCheckSerializer})
    def get(self, request, patient_code: str):
        actor = actor_from_request(request)
        consent = ConsentLedger.active_consent(doctor_code=actor.user_code, patient_code=patient_code)
        data = {"has_consent": consent is not None, "consent": consent}
        return Response(ConsentCheckSerializer(data).data, status=status.HTTP_200_OK)


class ConsentPendingStatusView(APIView):
    permission_classes = [IsDoctorRole]

    @extend_schema(tags=["Consent"], responses={200: ConsentPendingStatusSerializer})
    def get(self, request, patient_code: str):
        actor = actor_from_request(request)
        data = ConsentLedger.pending_status(doctor_code=actor.user_code, patient_code=patient_code)
        return Response(ConsentPendingStatusSerializer(data).data, status=status.HTTP_200_OK)


class ConsentRequestedView(APIView):
    permission_classes = [IsDoctorRole]

    @extend_schema(tags=["Consent"], responses={200: ConsentSerializer(many=True)})
    def get(self, request):
        actor = actor_from_request(request)
        ConsentLedger.expire_stale(doctor_code=actor.user_code)
        rows = ConsentLedger.list_for_doctor(doctor_code=actor.user_code)
        return Response(ConsentSerializer(rows, many=True).data, status=status.HTTP_200_OK)


# -------------------------
# Patient
# -------------------------
class ConsentGrantView(APIView):
    permission_classes = [IsPatientRole]

    @extend_schema(
        tags=["Consent"],
        request=ConsentGrantSerializer,
        responses={200: ConsentSerializer, 403: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT},
    )
    def post(self, request, consent_id):
        actor = actor_from_request(request)

        ser = ConsentGrantSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        consent = ConsentLedger.grant(
            actor=actor,
            consent_id=consent_id,
            expires_at=ser.validated_data["expires_at"],
        )
        return Response(ConsentSerializer(consent).data, status=status.HTTP_200_OK)


class ConsentDenyView(APIView):
    permission_classes = [IsPatientRole]

    @extend_schema(tags=["Consent"], request=None, responses={200: ConsentSerializer, 403: OpenApiTypes.OBJECT})
    def post(self, request, consent_id):
        consent = ConsentLedger.deny(actor=actor_from_request(request), consent_id=consent_id)
        return Response(ConsentSerializer(consent).data, status=status.HTTP_200_OK)


class ConsentRevokeView(APIView):
    permission_classes = [IsPatientRole]

    @extend_schema(tags=["Consent"], request=None, responses={200: ConsentSerializer, 409: OpenApiTypes.OBJECT})
    def post(self, request, consent_id):
        consent = ConsentLedger.revoke(actor=actor_from_request(request), consent_id=consent_id)
        return Response(ConsentSerializer(consent).data, status=status.HTTP_200_OK)


class ConsentPendingListView(APIView):
    permission_classes = [IsPatientRole]

    @extend_schema(tags=["Consent"], responses={200: ConsentSerializer(many=True)})
    def get(self, request):
        rows = ConsentLedger.list_pending(patient_code=actor_from_request(request).user_code)
        return Response(ConsentSerializer(rows, many=True).data, status=status.HTTP_200_OK)


class ConsentActiveListView(APIView):
    permission_classes = [IsPatientRole]

    @extend_schema(tags=["Consent"], responses={200: ConsentSerializer(many=True)})
    def get(self, request):
        rows = ConsentLedger.list_active(patient_code=actor_from_request(request).user_code)
        return Response(ConsentSerializer(rows, many=True).data, status=status.HTTP_200_OK)
