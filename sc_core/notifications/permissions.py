# sc_core/notifications/permissions.py

from __future__ import annotations

from sc_core.common.permissions import RolePermission
from sc_core.iam.models import Role

PROFILE_ROLES = set(Role.values)


class NotificationPermission(RolePermission):
    """
    Every profile role reads and acknowledges its own feed.
    Callers without a profile (bare auth users) are refused.
    """
    allowed_roles_per_action = {
        "list": PROFILE_ROLES,
        "mark_read": PROFILE_ROLES,
    }
