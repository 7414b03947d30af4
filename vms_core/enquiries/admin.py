# vms_core/enquiries/admin.py
from __future__ import annotations

from django.contrib import admin

from vms_core.enquiries.models import Enquiry, EnquiryDetailEdit


class EnquiryDetailEditInline(admin.TabularInline):
    model = EnquiryDetailEdit
    extra = 0
    can_delete = False
    fields = ("at", "author_name", "author_email", "text")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Enquiry)
class EnquiryAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "enquirer_name",
        "enquirer_mobile",
        "patient_name",
        "status",
        "assigned_staff",
        "assigned_doctor",
        "reminder_scheduled_at",
        "reminder_duration_hours",
        "created_at",
        "updated_at",
    )
    list_filter = ("status", "reminder_duration_hours")
    search_fields = ("id", "enquirer_name", "enquirer_mobile", "patient_name")
    ordering = ("-created_at",)

    # lifecycle fields only change through services
    readonly_fields = (
        "status",
        "assigned_staff_at",
        "assigned_doctor_at",
        "doc_remarks_at",
        "reminder_scheduled_at",
        "reminder_duration_hours",
        "original_status",
        "pending_since",
        "last_notification_shown",
        "reminder_expired_at",
        "created_at",
        "updated_at",
    )

    fieldsets = (
        ("Enquiry", {"fields": ("enquirer_name", "enquirer_mobile", "patient_name", "status")}),
        ("Assignment", {"fields": ("assigned_staff", "assigned_staff_at", "assigned_doctor", "assigned_doctor_at")}),
        ("Notes", {"fields": ("details", "doc_remarks", "doc_remarks_at")}),
        (
            "Reminder",
            {
                "fields": (
                    "reminder_scheduled_at",
                    "reminder_duration_hours",
                    "original_status",
                    "pending_since",
                    "last_notification_shown",
                    "reminder_expired_at",
                )
            },
        ),
        ("Audit", {"fields": ("created_by_email", "created_at", "updated_by_email", "updated_at")}),
    )
    inlines = [EnquiryDetailEditInline]
