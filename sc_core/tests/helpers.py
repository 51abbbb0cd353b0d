# sc_core/tests/helpers.py
import pyotp


def enable_mfa(profile):
    profile.mfa_secret = pyotp.random_base32()
    profile.mfa_enabled = True
    profile.save(update_fields=["mfa_secret", "mfa_enabled", "updated_at"])
    return profile


def totp_now(profile) -> str:
    return pyotp.TOTP(profile.mfa_secret).now()
