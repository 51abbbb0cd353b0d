from rest_framework import serializers

from sc_core.notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            "id",
            "channel",
            "topic",
            "stage",
            "title",
            "body",
            "deletion_request_id",
            "is_read",
            "read_at",
            "acknowledged_at",
            "created_at",
            "meta",
        ]
        read_only_fields = fields
