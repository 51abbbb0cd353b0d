# config/settings/test.py
from .base import *  # noqa

SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

LOGGING["loggers"]["sc_core"]["level"] = "WARNING"  # noqa: F405
LOGGING["loggers"]["sc_core"]["propagate"] = True  # noqa: F405
