# sc_core/deletion/sweep.py
"""
Periodic deletion sweep: reminders, finalization of due requests, and cancellation
of requests never confirmed with MFA.

Rows are handled one at a time, each in its own transaction. A row lost to a
concurrent user action is skipped; any other failure is logged and the sweep
moves on.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from django.utils.timezone import now as tz_now

from sc_core.common.conf import domain_setting
from sc_core.common.errors import DomainError
from sc_core.deletion.models import CancellationReason, DeletionRequest, DeletionStatus
from sc_core.deletion.services import DeletionWorkflow
from sc_core.iam.actor import SYSTEM_ACTOR_CODE

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    reminded: int = 0
    finalized: int = 0
    timed_out: int = 0
    skipped: int = 0
    failed: int = 0


def _run_each(qs, step, result: SweepResult, counter: str, label: str) -> None:
    for req in qs:
        try:
            step(req)
        except DomainError as exc:
            logger.info("Deletion sweep skipped %s for request %s: %s", label, req.id, exc.code)
            result.skipped += 1
        except Exception:
            logger.exception("Deletion sweep failed to %s request %s", label, req.id)
            result.failed += 1
        else:
            setattr(result, counter, getattr(result, counter) + 1)


def run_sweep(now=None) -> SweepResult:
    now = now or tz_now()
    result = SweepResult()
    base = DeletionRequest.objects.select_related("user")

    due = base.filter(status=DeletionStatus.MFA_VERIFIED, scheduled_deletion_date__lte=now)
    _run_each(due, lambda req: DeletionWorkflow.finalize_request(req, at=now), result, "finalized", "finalize")

    window = timedelta(hours=domain_setting("DELETION_REMINDER_WINDOW_HOURS"))
    reminders = base.filter(
        status=DeletionStatus.MFA_VERIFIED,
        reminder_sent_at__isnull=True,
        scheduled_deletion_date__gt=now,
        scheduled_deletion_date__lte=now + window,
    )
    _run_each(reminders, lambda req: DeletionWorkflow.send_reminder(req, at=now), result, "reminded", "remind")

    cutoff = now - timedelta(hours=domain_setting("DELETION_MFA_TIMEOUT_HOURS"))
    stale = base.filter(status=DeletionStatus.PENDING_MFA, requested_at__lte=cutoff)
    _run_each(
        stale,
        lambda req: DeletionWorkflow.cancel_request(
            req,
            reason=CancellationReason.MFA_TIMEOUT,
            actor_code=SYSTEM_ACTOR_CODE,
            at=now,
        ),
        result,
        "timed_out",
        "time out",
    )

    logger.info(
        "Deletion sweep: finalized=%s reminded=%s timed_out=%s skipped=%s failed=%s",
        result.finalized,
        result.reminded,
        result.timed_out,
        result.skipped,
        result.failed,
    )
    return result
