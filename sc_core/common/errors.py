# sc_core/common/errors.py
"""
Domain failures with stable, machine-readable codes.

Services raise these; the API exception handler renders them into the standard
error envelope using `default_code` as `error.code`, so clients branch on the code
and never on the human message.
"""
from __future__ import annotations

from typing import Any

from rest_framework import status
from rest_framework.exceptions import APIException


class DomainError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request failed."
    default_code = "DOMAIN_ERROR"

    def __init__(self, detail: str | None = None, *, details: Any = None):
        super().__init__(detail=detail or self.default_detail, code=self.default_code)
        self.details = details

    @property
    def code(self) -> str:
        return self.default_code


# -------------------------
# Precondition failures
# -------------------------
class MfaRequired(DomainError):
    default_detail = "Multi-factor authentication must be enabled before deleting the account."
    default_code = "MFA_REQUIRED"


class ExistingRequest(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "An active deletion request already exists."
    default_code = "EXISTING_REQUEST"


class DuplicatePending(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "A consent request for this patient is already pending."
    default_code = "DUPLICATE_PENDING"


class AlreadyGranted(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Consent for this patient is already granted."
    default_code = "ALREADY_GRANTED"


class NotOwner(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Only the owning patient may perform this action."
    default_code = "NOT_OWNER"


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "NOT_FOUND"


class NotGranted(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Consent is not in GRANTED state."
    default_code = "NOT_GRANTED"


class InvalidState(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request is not in a state that allows this action."
    default_code = "INVALID_STATE"


class AccountLocked(DomainError):
    status_code = status.HTTP_423_LOCKED
    default_detail = "The account is locked pending deletion."
    default_code = "ACCOUNT_LOCKED"


# -------------------------
# Authorization failures
# -------------------------
class RoleForbidden(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Your role does not permit this action."
    default_code = "ROLE_FORBIDDEN"


class OutOfUnit(RoleForbidden):
    default_detail = "The patient is not under your care unit."
    default_code = "OUT_OF_UNIT"


class ConsentRequired(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Patient consent is required."
    default_code = "CONSENT_REQUIRED"


# -------------------------
# Validation failures
# -------------------------
class InvalidCode(DomainError):
    # Generic on purpose: never reveals why a TOTP code was rejected.
    default_detail = "Invalid verification code."
    default_code = "INVALID_CODE"

    def __init__(self, detail: str | None = None, *, details: Any = None):
        super().__init__(None, details=None)
