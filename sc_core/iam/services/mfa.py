# sc_core/iam/services/mfa.py
from __future__ import annotations

import logging

import pyotp
from django.db import transaction

from sc_core.audit.services import AuditService
from sc_core.common.conf import domain_setting
from sc_core.common.errors import ExistingRequest, InvalidCode, InvalidState
from sc_core.iam.models import UserProfile

logger = logging.getLogger(__name__)


def _normalize(code) -> str:
    return "".join(str(code or "").split())


def verify_totp(secret: str, code) -> bool:
    code = _normalize(code)
    if not secret or not code.isdigit():
        return False
    return pyotp.TOTP(secret).verify(code, valid_window=domain_setting("MFA_TOTP_VALID_WINDOW"))


class MfaService:
    """
    TOTP enrolment and verification. The secret never leaves this module except
    as a provisioning URI during setup.
    """

    @staticmethod
    def verify_code(profile: UserProfile, code) -> bool:
        if not profile.mfa_enabled:
            return False
        return verify_totp(profile.mfa_secret, code)

    @staticmethod
    @transaction.atomic
    def begin_setup(profile: UserProfile) -> dict:
        if profile.mfa_enabled:
            raise InvalidState("MFA is already enabled.")

        secret = pyotp.random_base32()
        profile.mfa_pending_secret = secret
        profile.save(update_fields=["mfa_pending_secret", "updated_at"])

        uri = pyotp.TOTP(secret).provisioning_uri(
            name=profile.email or profile.user_code,
            issuer_name=domain_setting("MFA_ISSUER_NAME"),
        )
        return {"secret": secret, "provisioning_uri": uri}

    @staticmethod
    @transaction.atomic
    def confirm_setup(profile: UserProfile, code) -> UserProfile:
        if not profile.mfa_pending_secret:
            raise InvalidState("No MFA setup in progress.")
        if not verify_totp(profile.mfa_pending_secret, code):
            logger.warning("MFA setup verification failed for %s", profile.user_code)
            raise InvalidCode()

        profile.mfa_secret = profile.mfa_pending_secret
        profile.mfa_pending_secret = ""
        profile.mfa_enabled = True
        profile.save(update_fields=["mfa_secret", "mfa_pending_secret", "mfa_enabled", "updated_at"])

        AuditService.log(
            event_code="iam.mfa_enabled",
            entity_type="UserProfile",
            entity_id=profile.user_code,
            actor_code=profile.user_code,
        )
        return profile

    @staticmethod
    @transaction.atomic
    def disable(profile: UserProfile, code) -> UserProfile:
        from sc_core.deletion.selectors import active_request_for

        if not profile.mfa_enabled:
            raise InvalidState("MFA is not enabled.")
        if active_request_for(profile.user_code) is not None:
            raise ExistingRequest("MFA cannot be disabled while a deletion request is active.")
        if not MfaService.verify_code(profile, code):
            logger.warning("MFA disable verification failed for %s", profile.user_code)
            raise InvalidCode()

        profile.mfa_enabled = False
        profile.mfa_secret = ""
        profile.save(update_fields=["mfa_enabled", "mfa_secret", "updated_at"])

        AuditService.log(
            event_code="iam.mfa_disabled",
            entity_type="UserProfile",
            entity_id=profile.user_code,
            actor_code=profile.user_code,
        )
        return profile
