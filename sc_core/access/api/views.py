# sc_core/access/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import serializers, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from sc_core.access.engine import AccessDecisionEngine, Action
from sc_core.access.scopes import ResourceKind
from sc_core.iam.actor import actor_from_request


class DecisionQuerySerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=ResourceKind.choices, default=ResourceKind.RECORDS)
    action = serializers.ChoiceField(choices=Action.choices, default=Action.READ)


class AccessCheckView(APIView):
    """
    Ask for a decision without fetching data. Always 200; the body carries
    outcome and reason so the client can branch (e.g. offer a consent request).
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Access"],
        parameters=[
            OpenApiParameter(name="kind", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, enum=ResourceKind.values),
            OpenApiParameter(name="action", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, enum=Action.values),
        ],
        responses={200: OpenApiTypes.OBJECT},
    )
    def get(self, request, patient_code: str):
        actor = actor_from_request(request)

        q = DecisionQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)

        decision = AccessDecisionEngine.decide(
            actor,
            patient_code,
            q.validated_data["kind"],
            q.validated_data["action"],
        )
        body = decision.as_dict()
        body.pop("visible_record_ids")
        return Response(body, status=status.HTTP_200_OK)
