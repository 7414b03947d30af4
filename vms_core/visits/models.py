# vms_core/visits/models.py
from django.db import models
from django.utils import timezone

from vms_core.common.models import DetailEditModel, RecordModel
from vms_core.lifecycle.states import RecordKind
from vms_core.lifecycle.states import VisitStatus as LifecycleStatus


class VisitStatus(models.TextChoices):
    CHECKED_IN = LifecycleStatus.CHECKED_IN, "Checked In"
    CHECKED_OUT = LifecycleStatus.CHECKED_OUT, "Checked Out"


class Visit(RecordModel):
    """
    Walk-in visit. Shares assignment / details / remarks with enquiries
    but has check-in/out times instead of a reminder.
    """
    visitor_name = models.CharField(max_length=255)
    visitor_mobile = models.CharField(max_length=32, db_index=True)

    status = models.CharField(
        max_length=32,
        choices=VisitStatus.choices,
        default=VisitStatus.CHECKED_IN,
        db_index=True,
    )

    # Optional; blank = not tied to a branch
    branch_code = models.CharField(max_length=32, blank=True, default="", db_index=True)

    visit_date = models.DateTimeField(default=timezone.now, db_index=True)
    check_in_time = models.DateTimeField(default=timezone.now)
    check_out_time = models.DateTimeField(null=True, blank=True)

    admin_check_in_time = models.DateTimeField(null=True, blank=True)
    admin_check_out_time = models.DateTimeField(null=True, blank=True)
    visitor_check_out_time = models.DateTimeField(null=True, blank=True)

    RECORD_KIND = RecordKind.VISIT

    class Meta:
        db_table = "visits_visit"
        ordering = ("-created_at",)
        indexes = [
            models.Index(fields=["status", "created_at"]),
            models.Index(fields=["branch_code", "visit_date"]),
        ]

    def __str__(self) -> str:
        return f"{self.visitor_name} / {self.patient_name} ({self.status})"


class VisitDetailEdit(DetailEditModel):
    visit = models.ForeignKey(Visit, on_delete=models.CASCADE, related_name="detail_edits")

    class Meta(DetailEditModel.Meta):
        db_table = "visits_detail_edit"
