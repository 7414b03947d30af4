# vms_core/iam/admin.py
from __future__ import annotations

from django.contrib import admin

from vms_core.iam.models import UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "role", "branch_code", "is_active", "created_at", "updated_at")
    list_filter = ("role", "branch_code", "is_active")
    search_fields = ("user__username", "user__email", "branch_code")
    ordering = ("-created_at",)
