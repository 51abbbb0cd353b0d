# sc_core/iam/admin.py
from __future__ import annotations

from django.contrib import admin

from sc_core.iam.models import UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user_code", "role", "status", "mfa_enabled", "account_locked", "anonymized_at", "created_at")
    list_filter = ("role", "status", "mfa_enabled", "account_locked")
    search_fields = ("user_code", "user__username")
    exclude = ("mfa_secret", "mfa_pending_secret")
    ordering = ("user_code",)
