# sc_core/iam/actor.py
from __future__ import annotations

from dataclasses import dataclass

from sc_core.common.errors import RoleForbidden
from sc_core.iam.models import Role, UserProfile


@dataclass(frozen=True)
class Actor:
    """
    The authenticated caller, passed explicitly into every core service call.
    """
    user_code: str
    role: str

    @property
    def is_doctor(self) -> bool:
        return self.role == Role.DOCTOR

    @classmethod
    def of(cls, profile: UserProfile) -> "Actor":
        return cls(user_code=profile.user_code, role=profile.role)


SYSTEM_ACTOR_CODE = "SYSTEM"


def actor_from_request(request) -> Actor:
    profile = getattr(request.user, "sc_profile", None)
    if profile is None:
        raise RoleForbidden("No healthcare profile is attached to this account.")
    return Actor.of(profile)
