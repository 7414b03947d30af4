# vms_core/reminders/admin.py
from django.contrib import admin

from vms_core.reminders.models import DeviceNotificationMarker


@admin.register(DeviceNotificationMarker)
class DeviceNotificationMarkerAdmin(admin.ModelAdmin):
    list_display = ("device_id", "record_id", "shown_at")
    search_fields = ("device_id", "record_id")
    ordering = ("-shown_at",)
