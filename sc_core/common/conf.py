# sc_core/common/conf.py
from __future__ import annotations

from typing import Any

from django.conf import settings

DEFAULTS: dict[str, Any] = {
    "DELETION_DELAY_DAYS": 7,
    "DELETION_REMINDER_WINDOW_HOURS": 24,
    "DELETION_MFA_TIMEOUT_HOURS": 48,
    "DELETION_SWEEP_INTERVAL_SECONDS": 3600,
    "CONSENT_DEFAULT_TTL_DAYS": 365,
    "COLLABORATION_SUMMARY_LIMIT": 5,
    "MFA_TOTP_VALID_WINDOW": 1,
    "MFA_ISSUER_NAME": "SecureCare+",
}


def domain_setting(name: str) -> Any:
    """
    Read a domain knob from Django settings, falling back to DEFAULTS.
    Read at call time so tests can override with the `settings` fixture.
    """
    if name not in DEFAULTS:
        raise KeyError(f"Unknown domain setting: {name}")
    return getattr(settings, name, DEFAULTS[name])
