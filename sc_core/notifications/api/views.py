from __future__ import annotations

from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from sc_core.iam.actor import actor_from_request
from sc_core.notifications.api.serializers import NotificationSerializer
from sc_core.notifications.models import NotificationChannel
from sc_core.notifications.permissions import NotificationPermission
from sc_core.notifications.selectors import notifications_qs
from sc_core.notifications.services import NotificationService


@extend_schema_view(list=extend_schema(tags=["Notifications"]))
class NotificationViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    The caller's in-app notifications across all topics.
    """
    permission_classes = [NotificationPermission]
    serializer_class = NotificationSerializer

    def get_queryset(self):
        actor = actor_from_request(self.request)
        qs = notifications_qs(
            recipient_code=actor.user_code,
            channel=NotificationChannel.IN_APP,
            topic=self.request.query_params.get("topic") or None,
        )
        is_read = self.request.query_params.get("is_read")
        if is_read in ("true", "false"):
            qs = qs.filter(is_read=(is_read == "true"))
        return qs

    @extend_schema(request=None, responses={200: NotificationSerializer}, tags=["Notifications"])
    @action(methods=["POST"], detail=True, url_path="mark-read")
    def mark_read(self, request, pk=None):
        actor = actor_from_request(request)
        notif = NotificationService.mark_read(recipient_code=actor.user_code, notification_id=pk)
        return Response(NotificationSerializer(notif).data, status=status.HTTP_200_OK)
