# sc_core/notifications/selectors.py
from __future__ import annotations

from django.db.models import QuerySet

from sc_core.notifications.models import Notification, NotificationChannel, NotificationTopic


def notifications_qs(*, recipient_code: str, channel: str, topic: str | None = None) -> QuerySet[Notification]:
    qs = Notification.objects.filter(recipient__user_code=recipient_code, channel=channel)
    if topic:
        qs = qs.filter(topic=topic)
    return qs.order_by("-created_at")


def deletion_feed(*, recipient_code: str) -> QuerySet[Notification]:
    return notifications_qs(
        recipient_code=recipient_code,
        channel=NotificationChannel.IN_APP,
        topic=NotificationTopic.DELETION,
    )


def authenticator_feed(*, recipient_code: str) -> QuerySet[Notification]:
    return notifications_qs(recipient_code=recipient_code, channel=NotificationChannel.AUTHENTICATOR)
