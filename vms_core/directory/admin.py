# vms_core/directory/admin.py
from django.contrib import admin

from vms_core.directory.models import Branch, Doctor, Staff


@admin.register(Branch)
class BranchAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "phone", "created_at")
    search_fields = ("code", "name")
    ordering = ("name",)


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name",)
    ordering = ("name",)


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "branch_code", "is_active")
    list_filter = ("is_active", "branch_code")
    search_fields = ("name", "email")
    ordering = ("name",)
