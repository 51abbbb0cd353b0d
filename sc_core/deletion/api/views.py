# sc_core/deletion/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from sc_core.common.api.pagination import DefaultPagination
from sc_core.common.permissions import IsAdminRole
from sc_core.deletion.api.serializers import (
    DeletionRequestSerializer,
    DeletionStatusSerializer,
    InitiateDeletionResponseSerializer,
    InitiateDeletionSerializer,
    PendingDeletionSerializer,
    VerifyDeletionMfaSerializer,
)
from sc_core.deletion.services import DeletionWorkflow
from sc_core.iam.actor import actor_from_request
from sc_core.notifications.api.serializers import NotificationSerializer
from sc_core.notifications.selectors import authenticator_feed, deletion_feed
from sc_core.notifications.services import NotificationService


def _client_ip(request) -> str | None:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.META.get("REMOTE_ADDR") or None


class InitiateDeletionView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Deletion"],
        request=InitiateDeletionSerializer,
        responses={201: InitiateDeletionResponseSerializer, 400: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT},
    )
    def post(self, request):
        actor = actor_from_request(request)

        ser = InitiateDeletionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        req = DeletionWorkflow.initiate(
            actor=actor,
            device_fingerprint=ser.validated_data["device_fingerprint"],
            ip_address=_client_ip(request),
            user_agent=request.META.get("HTTP_USER_AGENT", ""),
        )
        return Response(
            {"mfa_required": True, "request": DeletionRequestSerializer(req).data},
            status=status.HTTP_201_CREATED,
        )


class VerifyDeletionMfaView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Deletion"],
        request=VerifyDeletionMfaSerializer,
        responses={200: DeletionRequestSerializer, 400: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT},
    )
    def post(self, request):
        actor = actor_from_request(request)

        ser = VerifyDeletionMfaSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        req = DeletionWorkflow.verify_mfa(
            actor=actor,
            code=ser.validated_data["mfa_code"],
            device_fingerprint=ser.validated_data["device_fingerprint"],
        )
        return Response(DeletionRequestSerializer(req).data, status=status.HTTP_200_OK)


class CancelDeletionView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Deletion"], request=None, responses={200: DeletionRequestSerializer, 404: OpenApiTypes.OBJECT})
    def post(self, request):
        req = DeletionWorkflow.cancel(actor=actor_from_request(request))
        return Response(DeletionRequestSerializer(req).data, status=status.HTTP_200_OK)


class DeletionStatusView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Deletion"], responses={200: DeletionStatusSerializer})
    def get(self, request):
        data = DeletionWorkflow.status(actor=actor_from_request(request))
        return Response(DeletionStatusSerializer(data).data, status=status.HTTP_200_OK)


# -------------------------
# Notification feeds
# -------------------------
class DeletionNotificationsView(generics.ListAPIView):
    """
    In-app deletion notices for the caller.
    """
    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer

    @extend_schema(tags=["Deletion"])
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        return deletion_feed(recipient_code=actor_from_request(self.request).user_code)


class AuthenticatorNotificationsView(generics.ListAPIView):
    """
    Authenticator-channel notices for the caller.
    """
    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer

    @extend_schema(tags=["Deletion"])
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        return authenticator_feed(recipient_code=actor_from_request(self.request).user_code)


class MarkNotificationReadView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Deletion"], request=None, responses={200: NotificationSerializer})
    def post(self, request, notification_id):
        actor = actor_from_request(request)
        notif = NotificationService.mark_read(recipient_code=actor.user_code, notification_id=notification_id)
        return Response(NotificationSerializer(notif).data, status=status.HTTP_200_OK)


class AcknowledgeNotificationView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Deletion"], request=None, responses={200: NotificationSerializer})
    def post(self, request, notification_id):
        actor = actor_from_request(request)
        notif = NotificationService.acknowledge(recipient_code=actor.user_code, notification_id=notification_id)
        return Response(NotificationSerializer(notif).data, status=status.HTTP_200_OK)


# -------------------------
# Administration
# -------------------------
class AdminPendingDeletionsView(APIView):
    permission_classes = [IsAdminRole]

    @extend_schema(tags=["Deletion"], responses={200: PendingDeletionSerializer(many=True)})
    def get(self, request):
        rows = DeletionWorkflow.pending_for_admin()
        return Response(PendingDeletionSerializer(rows, many=True).data, status=status.HTTP_200_OK)


class AdminDeletionHistoryView(generics.ListAPIView):
    permission_classes = [IsAdminRole]
    serializer_class = DeletionRequestSerializer
    pagination_class = DefaultPagination

    @extend_schema(
        tags=["Deletion"],
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="user_id", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        params = self.request.query_params
        return DeletionWorkflow.history(status=params.get("status") or None, user_code=params.get("user_id") or None)
