from django.contrib import admin

from sc_core.notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("recipient", "channel", "topic", "stage", "is_read", "acknowledged_at", "created_at")
    list_filter = ("channel", "topic", "stage", "is_read")
    search_fields = ("recipient__user_code", "title")
    ordering = ("-created_at",)
