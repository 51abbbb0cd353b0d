from django.contrib import admin

from sc_core.records.models import MedicalRecord


@admin.register(MedicalRecord)
class MedicalRecordAdmin(admin.ModelAdmin):
    # Operational metadata only; clinical text is never rendered for administrators.
    list_display = ("id", "patient", "created_by", "record_type", "created_at")
    list_filter = ("record_type",)
    search_fields = ("patient__user_code", "created_by__user_code")
    fields = ("patient", "created_by", "record_type", "created_at")
    readonly_fields = fields
    ordering = ("-created_at",)

    def has_add_permission(self, request):
        return False
