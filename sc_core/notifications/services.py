# sc_core/notifications/services.py
from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction

from sc_core.common.errors import NotFound
from sc_core.iam.models import UserProfile
from sc_core.notifications.models import Notification, NotificationChannel

logger = logging.getLogger(__name__)

BOTH_CHANNELS = (NotificationChannel.IN_APP, NotificationChannel.AUTHENTICATOR)


class NotificationService:
    @staticmethod
    @transaction.atomic
    def notify(
        *,
        recipient_code: str,
        topic: str,
        stage: str,
        title: str,
        body: str = "",
        channels: Iterable[str] = (NotificationChannel.IN_APP,),
        deletion_request_id: UUID | str | None = None,
        meta: dict | None = None,
    ) -> list[Notification]:
        recipient = UserProfile.objects.filter(user_code=recipient_code).first()
        if recipient is None:
            logger.warning("Notification %s/%s dropped: unknown recipient %s", topic, stage, recipient_code)
            return []

        objs = [
            Notification(
                recipient=recipient,
                channel=channel,
                topic=topic,
                stage=stage,
                title=title,
                body=body,
                deletion_request_id=deletion_request_id,
                meta=meta or {},
            )
            for channel in channels
        ]
        return Notification.objects.bulk_create(objs)

    @staticmethod
    def send_email(*, to: str, subject: str, body: str) -> int:
        if not to:
            return 0
        return send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [to], fail_silently=False)

    @staticmethod
    def _get_own(*, recipient_code: str, notification_id, channel: str) -> Notification:
        try:
            return Notification.objects.get(id=notification_id, recipient__user_code=recipient_code, channel=channel)
        except Notification.DoesNotExist:
            raise NotFound("Notification not found.")

    @staticmethod
    @transaction.atomic
    def mark_read(*, recipient_code: str, notification_id) -> Notification:
        notif = NotificationService._get_own(
            recipient_code=recipient_code,
            notification_id=notification_id,
            channel=NotificationChannel.IN_APP,
        )
        notif.mark_read()
        notif.save(update_fields=["is_read", "read_at", "updated_at"])
        return notif

    @staticmethod
    @transaction.atomic
    def acknowledge(*, recipient_code: str, notification_id) -> Notification:
        notif = NotificationService._get_own(
            recipient_code=recipient_code,
            notification_id=notification_id,
            channel=NotificationChannel.AUTHENTICATOR,
        )
        notif.acknowledge()
        notif.save(update_fields=["is_read", "read_at", "acknowledged_at", "updated_at"])
        return notif
