# vms_core/visits/admin.py
from __future__ import annotations

from django.contrib import admin

from vms_core.visits.models import Visit, VisitDetailEdit


class VisitDetailEditInline(admin.TabularInline):
    model = VisitDetailEdit
    extra = 0
    can_delete = False
    fields = ("at", "author_name", "author_email", "text")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Visit)
class VisitAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "visitor_name",
        "visitor_mobile",
        "patient_name",
        "status",
        "branch_code",
        "check_in_time",
        "check_out_time",
        "assigned_staff",
        "assigned_doctor",
    )
    list_filter = ("status", "branch_code")
    search_fields = ("id", "visitor_name", "visitor_mobile", "patient_name")
    ordering = ("-created_at",)
    readonly_fields = ("created_at", "updated_at", "assigned_staff_at", "assigned_doctor_at", "doc_remarks_at")
    inlines = [VisitDetailEditInline]
