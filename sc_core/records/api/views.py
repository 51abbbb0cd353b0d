# sc_core/records/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from sc_core.access.scopes import ResourceKind
from sc_core.common.permissions import IsPatientRole
from sc_core.iam.actor import actor_from_request
from sc_core.iam.models import Role
from sc_core.records.api.serializers import (
    MedicalRecordCreateSerializer,
    MedicalRecordSerializer,
    RecordQuerySerializer,
)
from sc_core.records.services import RecordService, RecordView


def _render(view: RecordView) -> dict:
    decision = view.decision
    body = {
        "outcome": decision.outcome,
        "message": decision.message,
        "hidden_count": decision.hidden_count,
        "scopes": list(decision.scopes),
    }
    if decision.metadata_only:
        body["summary"] = view.summary
    else:
        body["records"] = MedicalRecordSerializer(view.records, many=True).data
    return body


class RecordCreateView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Records"],
        request=MedicalRecordCreateSerializer,
        responses={201: MedicalRecordSerializer, 403: OpenApiTypes.OBJECT, 423: OpenApiTypes.OBJECT},
    )
    def post(self, request):
        actor = actor_from_request(request)

        ser = MedicalRecordCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        record = RecordService.create_record(
            actor=actor,
            patient_code=data["patient_id"],
            record_type=data["record_type"],
            title=data["title"],
            diagnosis=data["diagnosis"],
            details=data["details"],
            prescription=data["prescription"],
        )
        return Response(MedicalRecordSerializer(record).data, status=status.HTTP_201_CREATED)


class PatientRecordsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Records"],
        parameters=[
            OpenApiParameter(
                name="kind",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                enum=ResourceKind.values,
                description="Resource kind. Administrators default to METADATA, everyone else to RECORDS.",
            ),
        ],
        responses={200: OpenApiTypes.OBJECT, 403: OpenApiTypes.OBJECT},
    )
    def get(self, request, patient_code: str):
        actor = actor_from_request(request)

        q = RecordQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        default_kind = ResourceKind.METADATA if actor.role == Role.ADMIN else ResourceKind.RECORDS
        kind = q.validated_data.get("kind") or default_kind

        view = RecordService.view_for(actor=actor, patient_code=patient_code, kind=kind)
        return Response(_render(view), status=status.HTTP_200_OK)


class MyRecordsView(APIView):
    permission_classes = [IsPatientRole]

    @extend_schema(tags=["Records"], responses={200: OpenApiTypes.OBJECT})
    def get(self, request):
        view = RecordService.mine(actor=actor_from_request(request))
        return Response(_render(view), status=status.HTTP_200_OK)
