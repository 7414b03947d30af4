# vms_core/directory/models.py
import uuid

from django.db import models

from vms_core.common.models import TimeStampedModel


class Branch(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=255)
    address = models.TextField(blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")

    class Meta:
        db_table = "directory_branch"
        ordering = ("name",)

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"


class Doctor(TimeStampedModel):
    """
    Stored name always carries the "Dr. " prefix (see doctor_display_name).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, unique=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "directory_doctor"
        ordering = ("name",)

    def __str__(self) -> str:
        return self.name


class Staff(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True, default="")
    branch_code = models.CharField(max_length=32, blank=True, default="", db_index=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "directory_staff"
        ordering = ("name",)
        verbose_name_plural = "staff"

    def __str__(self) -> str:
        return self.name
