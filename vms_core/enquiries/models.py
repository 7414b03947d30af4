# vms_core/enquiries/models.py
from django.db import models

from vms_core.common.models import DetailEditModel, RecordModel
from vms_core.lifecycle.records import Reminder, RecordState
from vms_core.lifecycle.states import EnquiryStatus as LifecycleStatus
from vms_core.lifecycle.states import RecordKind


class EnquiryStatus(models.TextChoices):
    PENDING = LifecycleStatus.PENDING, "Pending"
    IN_PROGRESS = LifecycleStatus.IN_PROGRESS, "In Progress"
    COMPLETED = LifecycleStatus.COMPLETED, "Completed"
    CANCELLED = LifecycleStatus.CANCELLED, "Cancelled"


class Enquiry(RecordModel):
    """
    Enquiry raised at the front desk and worked through the status lifecycle.
    """
    enquirer_name = models.CharField(max_length=255)
    enquirer_mobile = models.CharField(max_length=32, db_index=True)

    status = models.CharField(
        max_length=32,
        choices=EnquiryStatus.choices,
        default=EnquiryStatus.PENDING,
        db_index=True,
    )

    # Reminder sub-state: all three set or all three null
    reminder_scheduled_at = models.DateTimeField(null=True, blank=True, db_index=True)
    reminder_duration_hours = models.PositiveSmallIntegerField(null=True, blank=True)
    original_status = models.CharField(max_length=32, choices=EnquiryStatus.choices, blank=True, default="")

    # Notification sub-state
    pending_since = models.DateTimeField(null=True, blank=True)
    last_notification_shown = models.DateTimeField(null=True, blank=True)
    reminder_expired_at = models.DateTimeField(null=True, blank=True, db_index=True)

    RECORD_KIND = RecordKind.ENQUIRY
    RECORD_FIELDS = RecordModel.RECORD_FIELDS + (
        "pending_since",
        "last_notification_shown",
        "reminder_expired_at",
    )

    class Meta:
        db_table = "enquiries_enquiry"
        ordering = ("-created_at",)
        indexes = [
            models.Index(fields=["status", "created_at"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(
                        reminder_scheduled_at__isnull=True,
                        reminder_duration_hours__isnull=True,
                        original_status="",
                    )
                    | (
                        models.Q(reminder_scheduled_at__isnull=False, reminder_duration_hours__isnull=False)
                        & ~models.Q(original_status="")
                    )
                ),
                name="ck_enquiry_reminder_all_or_nothing",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.enquirer_name} / {self.patient_name} ({self.status})"

    @property
    def reminder(self) -> Reminder | None:
        if self.reminder_scheduled_at is None:
            return None
        return Reminder(
            scheduled_at=self.reminder_scheduled_at,
            duration_hours=self.reminder_duration_hours,
            original_status=self.original_status,
        )

    @property
    def reminder_expires_at(self):
        reminder = self.reminder
        return reminder.expires_at if reminder else None

    def record_extra(self) -> dict:
        return {"reminder": self.reminder}

    def apply_record_extra(self, record: RecordState) -> list[str]:
        reminder = record.reminder
        values = {
            "reminder_scheduled_at": reminder.scheduled_at if reminder else None,
            "reminder_duration_hours": reminder.duration_hours if reminder else None,
            "original_status": reminder.original_status if reminder else "",
        }
        changed = []
        for name, value in values.items():
            if getattr(self, name) != value:
                setattr(self, name, value)
                changed.append(name)
        return changed


class EnquiryDetailEdit(DetailEditModel):
    enquiry = models.ForeignKey(Enquiry, on_delete=models.CASCADE, related_name="detail_edits")

    class Meta(DetailEditModel.Meta):
        db_table = "enquiries_detail_edit"
