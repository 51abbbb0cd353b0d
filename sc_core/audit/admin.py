# sc_core/audit/admin.py
from django.contrib import admin

from sc_core.audit.models import AccessEvent, AuditEvent


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(AuditEvent)
class AuditEventAdmin(ReadOnlyAdmin):
    list_display = ("event_code", "entity_type", "entity_id", "actor_code", "occurred_at")
    list_filter = ("event_code", "entity_type")
    search_fields = ("event_code", "entity_type", "entity_id", "actor_code")
    ordering = ("-occurred_at",)


@admin.register(AccessEvent)
class AccessEventAdmin(ReadOnlyAdmin):
    list_display = ("actor_code", "actor_role", "target_patient_code", "resource", "decision", "reason", "timestamp")
    list_filter = ("outcome", "decision", "reason", "resource")
    search_fields = ("actor_code", "target_patient_code")
    ordering = ("-timestamp",)
