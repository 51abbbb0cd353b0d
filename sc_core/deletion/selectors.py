# sc_core/deletion/selectors.py
from __future__ import annotations

from django.db.models import QuerySet

from sc_core.deletion.models import ACTIVE_DELETION_STATUSES, DeletionRequest


def deletion_requests_qs() -> QuerySet[DeletionRequest]:
    return DeletionRequest.objects.select_related("user")


def active_request_for(user_code: str) -> DeletionRequest | None:
    return deletion_requests_qs().filter(user__user_code=user_code, status__in=ACTIVE_DELETION_STATUSES).first()


def pending_requests() -> QuerySet[DeletionRequest]:
    return deletion_requests_qs().filter(status__in=ACTIVE_DELETION_STATUSES).order_by("scheduled_deletion_date")


def request_history(*, status: str | None = None, user_code: str | None = None) -> QuerySet[DeletionRequest]:
    qs = deletion_requests_qs()
    if status:
        qs = qs.filter(status=status)
    if user_code:
        qs = qs.filter(user__user_code=user_code)
    return qs.order_by("-requested_at")
