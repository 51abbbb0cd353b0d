# sc_core/iam/services/identity.py
from __future__ import annotations

from typing import Any

from django.contrib.auth import get_user_model
from django.db import transaction

from sc_core.audit.services import AuditService
from sc_core.common.errors import AccountLocked, NotFound, RoleForbidden
from sc_core.iam.actor import Actor
from sc_core.iam.models import ROLE_PREFIXES, Role, UserProfile

EDITABLE_PROFILE_FIELDS = ("first_name", "last_name", "email", "phone", "specialty")


def get_profile(user_code: str) -> UserProfile:
    try:
        return UserProfile.objects.select_related("user").get(user_code=user_code)
    except UserProfile.DoesNotExist:
        raise NotFound(f"User {user_code} not found.")


def get_patient(patient_code: str) -> UserProfile:
    profile = UserProfile.objects.filter(user_code=patient_code, role=Role.PATIENT).first()
    if profile is None:
        raise NotFound(f"Patient {patient_code} not found.")
    return profile


def next_user_code(role: str) -> str:
    """
    Next role-prefixed code: P001, P002, ... D001, ...
    Width grows past 999 rather than wrapping.
    """
    prefix = ROLE_PREFIXES[Role(role)]
    highest = 0
    for code in UserProfile.objects.filter(user_code__startswith=prefix).values_list("user_code", flat=True):
        suffix = code[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1:03d}"


class IdentityService:
    @staticmethod
    @transaction.atomic
    def register(
        *,
        role: str,
        username: str,
        password: str | None = None,
        email: str = "",
        first_name: str = "",
        last_name: str = "",
        phone: str = "",
        specialty: str = "",
        care_unit: str = "",
        user_code: str | None = None,
    ) -> UserProfile:
        if role not in Role.values:
            raise RoleForbidden(f"Unknown role: {role}")

        User = get_user_model()
        user = User.objects.create_user(username=username, password=password, email=email)

        profile = UserProfile.objects.create(
            user=user,
            user_code=user_code or next_user_code(role),
            role=role,
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            specialty=specialty,
            care_unit=care_unit,
        )

        AuditService.log(
            event_code="iam.user_registered",
            entity_type="UserProfile",
            entity_id=profile.user_code,
            actor_code=profile.user_code,
            metadata={"role": role},
        )
        return profile

    @staticmethod
    @transaction.atomic
    def update_profile(*, actor: Actor, changes: dict[str, Any]) -> UserProfile:
        """
        Self-service profile edit. Refused while the account is locked for deletion.
        """
        profile = UserProfile.objects.select_for_update().get(user_code=actor.user_code)
        if profile.account_locked:
            raise AccountLocked()

        update_fields: list[str] = []
        for field in EDITABLE_PROFILE_FIELDS:
            if field in changes and getattr(profile, field) != changes[field]:
                setattr(profile, field, changes[field])
                update_fields.append(field)

        if not update_fields:
            return profile

        profile.save(update_fields=update_fields + ["updated_at"])
        if "email" in update_fields:
            profile.user.email = profile.email
            profile.user.save(update_fields=["email"])

        AuditService.log(
            event_code="iam.profile_updated",
            entity_type="UserProfile",
            entity_id=profile.user_code,
            actor_code=actor.user_code,
            metadata={"fields": update_fields},
        )
        return profile
