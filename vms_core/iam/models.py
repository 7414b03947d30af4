# vms_core/iam/models.py
import uuid

from django.conf import settings
from django.db import models


class Role(models.TextChoices):
    SUPER_ADMIN = "super_admin", "Super admin"
    BRANCH_ADMIN = "branch_admin", "Branch admin"
    STAFF = "staff", "Staff"


class UserProfile(models.Model):
    """
    Role / branch claims anchored to Django's AUTH_USER_MODEL.
    A user without a profile signs in with read-only access.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="vms_profile")
    role = models.CharField(max_length=32, choices=Role.choices, default=Role.STAFF, db_index=True)
    branch_code = models.CharField(max_length=64, blank=True, default="", db_index=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "iam_user_profile"
        indexes = [
            models.Index(fields=["role", "is_active"]),
        ]

    def __str__(self) -> str:
        branch = f" @ {self.branch_code}" if self.branch_code else ""
        return f"{self.user.get_username()} ({self.role}{branch})"
