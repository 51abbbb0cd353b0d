from django.contrib import admin

from sc_core.deletion.models import DeletionRequest


@admin.register(DeletionRequest)
class DeletionRequestAdmin(admin.ModelAdmin):
    list_display = ("user", "status", "requested_at", "scheduled_deletion_date", "mfa_verified_at", "completed_at")
    list_filter = ("status", "cancellation_reason")
    search_fields = ("user__user_code",)
    ordering = ("-requested_at",)
    readonly_fields = [f.name for f in DeletionRequest._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
