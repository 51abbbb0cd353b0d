# sc_core/deletion/services.py
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils.timezone import now

from sc_core.audit.services import AuditService
from sc_core.collaboration.services import CollaborationService
from sc_core.common.conf import domain_setting
from sc_core.common.errors import ExistingRequest, InvalidCode, InvalidState, MfaRequired, NotFound
from sc_core.common.events import publish_on_commit
from sc_core.consent.services import ConsentLedger
from sc_core.deletion.models import (
    ACTIVE_DELETION_STATUSES,
    CancellationReason,
    DeletionRequest,
    DeletionStatus,
)
from sc_core.deletion.selectors import active_request_for, pending_requests, request_history
from sc_core.iam.actor import SYSTEM_ACTOR_CODE, Actor
from sc_core.iam.models import UserProfile
from sc_core.iam.services.mfa import verify_totp
from sc_core.notifications.models import Notification, NotificationTopic

logger = logging.getLogger(__name__)


def _payload(req: DeletionRequest, **extra) -> dict[str, Any]:
    return {
        "user_code": req.user.user_code,
        "request_id": str(req.id),
        "scheduled_deletion_date": req.scheduled_deletion_date.isoformat(),
        **extra,
    }


class DeletionWorkflow:
    """
    Account erasure with a confirmation step and a grace period.

    NONE -> PENDING_MFA -> MFA_VERIFIED -> CANCELLED | COMPLETED
    PENDING_MFA -> CANCELLED (user, or MFA timeout from the sweep)

    Transitions go through `_transition`, a compare-and-set on (status, version).
    A caller that loses the race gets InvalidState and changes nothing.
    """

    # -------------------------
    # Internal helpers
    # -------------------------
    @staticmethod
    def _transition(req: DeletionRequest, *, from_statuses, **changes) -> DeletionRequest:
        updated = DeletionRequest.objects.filter(
            id=req.id,
            status__in=list(from_statuses),
            version=req.version,
        ).update(version=F("version") + 1, updated_at=now(), **changes)

        if updated != 1:
            current = DeletionRequest.objects.filter(id=req.id).values_list("status", flat=True).first()
            raise InvalidState(
                "The deletion request changed concurrently.",
                details={"request_id": str(req.id), "status": current},
            )

        req.refresh_from_db()
        return req

    @staticmethod
    def _set_lock(profile: UserProfile, locked: bool) -> None:
        profile.account_locked = locked
        profile.save(update_fields=["account_locked", "updated_at"])

    @staticmethod
    def _log(req: DeletionRequest, event_code: str, actor_code: str, **extra) -> None:
        AuditService.log(
            event_code=event_code,
            entity_type="DeletionRequest",
            entity_id=req.id,
            actor_code=actor_code,
            metadata={"user_code": req.user.user_code, "status": req.status, **extra},
        )

    @staticmethod
    def _require_active(user_code: str) -> DeletionRequest:
        req = active_request_for(user_code)
        if req is None:
            raise NotFound("No active deletion request.")
        return req

    # -------------------------
    # User actions
    # -------------------------
    @staticmethod
    @transaction.atomic
    def initiate(
        *,
        actor: Actor,
        device_fingerprint: str = "",
        ip_address: str | None = None,
        user_agent: str = "",
        at=None,
    ) -> DeletionRequest:
        at = at or now()
        profile = UserProfile.objects.select_for_update().get(user_code=actor.user_code)

        if not profile.mfa_enabled:
            raise MfaRequired()

        existing = active_request_for(profile.user_code)
        if existing is not None:
            raise ExistingRequest(details={"request_id": str(existing.id), "status": existing.status})

        try:
            with transaction.atomic():
                req = DeletionRequest.objects.create(
                    user=profile,
                    status=DeletionStatus.PENDING_MFA,
                    requested_at=at,
                    scheduled_deletion_date=at + timedelta(days=domain_setting("DELETION_DELAY_DAYS")),
                    device_fingerprint=device_fingerprint or "",
                    ip_address=ip_address or None,
                    user_agent=(user_agent or "")[:512],
                )
        except IntegrityError:
            raise ExistingRequest()

        DeletionWorkflow._log(req, "deletion.initiated", actor.user_code, ip_address=ip_address or "")
        publish_on_commit("deletion.initiated", _payload(req))
        return req

    @staticmethod
    def verify_mfa(*, actor: Actor, code, device_fingerprint: str = "", at=None) -> DeletionRequest:
        at = at or now()
        req = DeletionWorkflow._require_active(actor.user_code)
        if req.status != DeletionStatus.PENDING_MFA:
            raise InvalidState("Deletion is already confirmed.", details={"status": req.status})

        if not verify_totp(req.user.mfa_secret, code):
            # kept outside the transition so the failure stays on record
            logger.warning("Deletion MFA verification failed for %s (request %s)", actor.user_code, req.id)
            DeletionWorkflow._log(req, "deletion.mfa_failed", actor.user_code, device_fingerprint=device_fingerprint or "")
            raise InvalidCode()

        if device_fingerprint and req.device_fingerprint and device_fingerprint != req.device_fingerprint:
            logger.warning("Deletion for %s confirmed from a different device", actor.user_code)

        with transaction.atomic():
            profile = UserProfile.objects.select_for_update().get(pk=req.user_id)
            req = DeletionWorkflow._transition(
                req,
                from_statuses=[DeletionStatus.PENDING_MFA],
                status=DeletionStatus.MFA_VERIFIED,
                mfa_verified_at=at,
                account_locked=True,
            )
            DeletionWorkflow._set_lock(profile, True)
            DeletionWorkflow._log(req, "deletion.mfa_verified", actor.user_code, device_fingerprint=device_fingerprint or "")
            publish_on_commit("deletion.mfa_verified", _payload(req))
        return req

    @staticmethod
    def cancel(*, actor: Actor, at=None) -> DeletionRequest:
        req = DeletionWorkflow._require_active(actor.user_code)
        return DeletionWorkflow.cancel_request(req, reason=CancellationReason.USER, actor_code=actor.user_code, at=at)

    @staticmethod
    @transaction.atomic
    def cancel_request(req: DeletionRequest, *, reason: str, actor_code: str, at=None) -> DeletionRequest:
        at = at or now()
        profile = UserProfile.objects.select_for_update().get(pk=req.user_id)
        # fresh version: a reminder stamp must not make a still-active request uncancellable
        req = DeletionRequest.objects.select_for_update().select_related("user").get(pk=req.pk)
        req = DeletionWorkflow._transition(
            req,
            from_statuses=ACTIVE_DELETION_STATUSES,
            status=DeletionStatus.CANCELLED,
            cancelled_at=at,
            cancellation_reason=reason,
            account_locked=False,
        )
        DeletionWorkflow._set_lock(profile, False)
        DeletionWorkflow._log(req, "deletion.cancelled", actor_code, reason=reason)
        publish_on_commit("deletion.cancelled", _payload(req, reason=reason))
        return req

    # -------------------------
    # System actions
    # -------------------------
    @staticmethod
    def finalize(*, user_code: str, at=None) -> DeletionRequest:
        return DeletionWorkflow.finalize_request(DeletionWorkflow._require_active(user_code), at=at)

    @staticmethod
    @transaction.atomic
    def finalize_request(req: DeletionRequest, *, at=None) -> DeletionRequest:
        """
        Erase personal identifiers, keep the clinical and audit skeleton.
        The user_code and role survive so records and access events still resolve.
        """
        at = at or now()
        if req.status != DeletionStatus.MFA_VERIFIED:
            raise InvalidState("Only a confirmed deletion can be finalized.", details={"status": req.status})
        if at < req.scheduled_deletion_date:
            raise InvalidState(
                "The grace period has not ended.",
                details={"scheduled_deletion_date": req.scheduled_deletion_date.isoformat()},
            )

        profile = UserProfile.objects.select_for_update().select_related("user").get(pk=req.user_id)
        req = DeletionWorkflow._transition(
            req,
            from_statuses=[DeletionStatus.MFA_VERIFIED],
            status=DeletionStatus.COMPLETED,
            completed_at=at,
        )

        email = profile.email or profile.user.email
        DeletionWorkflow._anonymize(profile, at=at)

        consents = ConsentLedger.close_all_for_patient(patient_code=profile.user_code, at=at)
        collaborations = CollaborationService.close_all_for_patient(patient_code=profile.user_code, at=at)
        Notification.objects.filter(recipient=profile, topic=NotificationTopic.DELETION).delete()

        DeletionWorkflow._log(
            req,
            "deletion.completed",
            SYSTEM_ACTOR_CODE,
            consents_closed=consents,
            collaborations_closed=collaborations,
        )
        publish_on_commit("deletion.completed", _payload(req, email=email))
        logger.info("Account %s erased (request %s)", profile.user_code, req.id)
        return req

    @staticmethod
    def _anonymize(profile: UserProfile, *, at) -> None:
        profile.first_name = ""
        profile.last_name = ""
        profile.email = ""
        profile.phone = ""
        profile.specialty = ""
        profile.mfa_enabled = False
        profile.mfa_secret = ""
        profile.mfa_pending_secret = ""
        profile.account_locked = True
        profile.anonymized_at = at
        profile.save()

        user = profile.user
        user.username = f"erased-{profile.user_code}"
        user.email = ""
        user.first_name = ""
        user.last_name = ""
        user.is_active = False
        user.set_unusable_password()
        user.save()

    @staticmethod
    @transaction.atomic
    def send_reminder(req: DeletionRequest, *, at=None) -> DeletionRequest:
        at = at or now()
        req = DeletionWorkflow._transition(
            req,
            from_statuses=[DeletionStatus.MFA_VERIFIED],
            reminder_sent_at=at,
        )
        DeletionWorkflow._log(req, "deletion.reminder_sent", SYSTEM_ACTOR_CODE)
        publish_on_commit("deletion.reminder_due", _payload(req))
        return req

    # -------------------------
    # Queries
    # -------------------------
    @staticmethod
    def status(*, actor: Actor, at=None) -> dict[str, Any]:
        at = at or now()
        req = active_request_for(actor.user_code)
        if req is None:
            locked = UserProfile.objects.filter(user_code=actor.user_code).values_list("account_locked", flat=True).first()
            return {
                "has_pending_deletion": False,
                "request_id": None,
                "status": None,
                "days_remaining": None,
                "scheduled_deletion_date": None,
                "mfa_verified": False,
                "account_locked": bool(locked),
            }
        return {
            "has_pending_deletion": True,
            "request_id": str(req.id),
            "status": req.status,
            "days_remaining": req.days_remaining(at),
            "scheduled_deletion_date": req.scheduled_deletion_date,
            "mfa_verified": req.mfa_verified,
            "account_locked": req.user.account_locked,
        }

    @staticmethod
    def pending_for_admin(*, at=None) -> list[dict[str, Any]]:
        at = at or now()
        return [
            {
                "request_id": str(req.id),
                "user_id": req.user.user_code,
                "user_email": req.user.email,
                "status": req.status,
                "requested_at": req.requested_at,
                "scheduled_deletion_date": req.scheduled_deletion_date,
                "days_remaining": req.days_remaining(at),
                "mfa_verified": req.mfa_verified,
            }
            for req in pending_requests()
        ]

    @staticmethod
    def history(*, status: str | None = None, user_code: str | None = None):
        return request_history(status=status, user_code=user_code)
