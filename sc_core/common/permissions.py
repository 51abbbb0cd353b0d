# sc_core/common/permissions.py

from __future__ import annotations

from rest_framework.permissions import BasePermission, SAFE_METHODS

from sc_core.iam.models import Role


def actor_role(user) -> str | None:
    """
    Resolve the caller's role from the profile anchored to the auth user.
    Superusers without a profile are treated as ADMIN.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return None

    profile = getattr(user, "sc_profile", None)
    if profile is not None:
        return profile.role

    if getattr(user, "is_superuser", False):
        return Role.ADMIN
    return None


class RolePermission(BasePermission):
    """
    Base permission class for role-based access control.

    Key behavior:
    - Requires authentication and a resolvable role.
    - Uses allowed_roles_per_action for strict RBAC (no ADMIN bypass: administrators
      are limited to operational endpoints).
    - Unknown SAFE actions fall back to the "list" entry; anything else is denied.
    """
    message = "You do not have permission to perform this action."

    # Override in subclasses: dict of action -> set of allowed roles
    allowed_roles_per_action: dict[str, set[str]] = {}

    def has_permission(self, request, view) -> bool:
        role = actor_role(request.user)
        if role is None:
            return False

        action = getattr(view, "action", None)
        allowed = self.allowed_roles_per_action.get(action)

        if allowed is None and request.method in SAFE_METHODS:
            allowed = self.allowed_roles_per_action.get("list")

        if allowed is not None:
            return role in allowed

        # Unknown action => deny by default
        return False


class IsAdminRole(BasePermission):
    message = "Administrator role required."

    def has_permission(self, request, view) -> bool:
        return actor_role(request.user) == Role.ADMIN


class IsPatientRole(BasePermission):
    message = "Patient role required."

    def has_permission(self, request, view) -> bool:
        return actor_role(request.user) == Role.PATIENT


class IsDoctorRole(BasePermission):
    message = "Doctor role required."

    def has_permission(self, request, view) -> bool:
        return actor_role(request.user) == Role.DOCTOR
