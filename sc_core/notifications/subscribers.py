# sc_core/notifications/subscribers.py
"""
Event -> notification fan-out.

Publishers call `publish_on_commit`, so every handler here runs after the state
transition is durable. Handlers never raise back into the publisher.
"""
from __future__ import annotations

from django.utils.dateparse import parse_datetime

from sc_core.common.events import subscribe
from sc_core.notifications.models import NotificationStage, NotificationTopic
from sc_core.notifications.services import BOTH_CHANNELS, NotificationService


def _fmt(value: str | None) -> str:
    dt = parse_datetime(value) if value else None
    return dt.strftime("%d %b %Y %H:%M UTC") if dt else "the scheduled date"


def _deletion_notice(payload: dict, *, stage: str, title: str, body: str) -> None:
    NotificationService.notify(
        recipient_code=payload["user_code"],
        topic=NotificationTopic.DELETION,
        stage=stage,
        title=title,
        body=body,
        channels=BOTH_CHANNELS,
        deletion_request_id=payload.get("request_id"),
        meta={"scheduled_deletion_date": payload.get("scheduled_deletion_date")},
    )


@subscribe("deletion.initiated")
def on_deletion_initiated(payload: dict) -> None:
    _deletion_notice(
        payload,
        stage=NotificationStage.INITIAL,
        title="Account deletion request",
        body=(
            f"Your account is scheduled for deletion on {_fmt(payload.get('scheduled_deletion_date'))}. "
            "Confirm with a code from your authenticator app to proceed."
        ),
    )


@subscribe("deletion.mfa_verified")
def on_deletion_confirmed(payload: dict) -> None:
    _deletion_notice(
        payload,
        stage=NotificationStage.MFA_CONFIRMATION,
        title="Deletion confirmed",
        body=(
            "Your account deletion was confirmed with MFA and the account is now locked. "
            f"It will be permanently deleted on {_fmt(payload.get('scheduled_deletion_date'))} unless you cancel."
        ),
    )


@subscribe("deletion.reminder_due")
def on_deletion_reminder(payload: dict) -> None:
    _deletion_notice(
        payload,
        stage=NotificationStage.REMINDER_24H,
        title="Final deletion reminder",
        body=(
            f"Your account will be permanently deleted on {_fmt(payload.get('scheduled_deletion_date'))}. "
            "Cancel now if you want to keep it."
        ),
    )


@subscribe("deletion.cancelled")
def on_deletion_cancelled(payload: dict) -> None:
    _deletion_notice(
        payload,
        stage=NotificationStage.CANCELLED,
        title="Deletion cancelled",
        body="Your account deletion request was cancelled and the account is unlocked.",
    )


@subscribe("deletion.completed")
def on_deletion_completed(payload: dict) -> None:
    # The profile is already anonymized: the only channel left is the address captured before erasure.
    NotificationService.send_email(
        to=payload.get("email") or "",
        subject="Your SecureCare+ account has been deleted",
        body=(
            "Your account and personal identifiers have been permanently erased. "
            "Clinical and audit records are retained in de-identified form as required by law."
        ),
    )


@subscribe("consent.requested")
def on_consent_requested(payload: dict) -> None:
    NotificationService.notify(
        recipient_code=payload["patient_code"],
        topic=NotificationTopic.CONSENT,
        stage=NotificationStage.CONSENT_REQUESTED,
        title="New consent request",
        body=f"Doctor {payload['doctor_code']} is requesting access to your medical records.",
        meta={"consent_id": payload.get("consent_id"), "doctor_code": payload["doctor_code"]},
    )


@subscribe("collaboration.requested")
def on_collaboration_requested(payload: dict) -> None:
    NotificationService.notify(
        recipient_code=payload["consulting_doctor_code"],
        topic=NotificationTopic.COLLABORATION,
        stage=NotificationStage.COLLABORATION_REQUESTED,
        title="Consultation request",
        body=(
            f"Doctor {payload['requesting_doctor_code']} requests a {payload['access_scope']} "
            f"consultation on patient {payload['patient_code']}."
        ),
        meta={"collaboration_id": payload.get("collaboration_id")},
    )
