# vms_core/enquiries/selectors.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from django.core.exceptions import ValidationError
from django.db.models import Q, QuerySet
from django.utils import timezone

from vms_core.common.timeutils import parse_date_param
from vms_core.enquiries.models import Enquiry, EnquiryDetailEdit, EnquiryStatus
from vms_core.lifecycle.reminders import describe_time_remaining


class EnquirySelector:
    class NotFound(Exception):
        pass

    ALLOWED_ORDERING = {"created_at", "-created_at", "updated_at", "-updated_at", "status", "-status"}

    @staticmethod
    def get_enquiry(*, enquiry_id) -> Enquiry:
        try:
            return Enquiry.objects.get(id=enquiry_id)
        except (Enquiry.DoesNotExist, ValidationError, ValueError):
            raise EnquirySelector.NotFound()

    @staticmethod
    def list_enquiries(*, params: Any) -> QuerySet[Enquiry]:
        """
        Query params supported:
          - q: enquirer name / mobile / patient name (icontains)
          - status
          - date=YYYY-MM-DD (created on that local day)
          - has_reminder=1|0
          - ordering in ALLOWED_ORDERING (default -created_at)
        """
        q = (params.get("q") or "").strip()
        status_param = params.get("status")
        date_param = params.get("date")
        has_reminder = params.get("has_reminder")
        ordering = params.get("ordering")

        qs = Enquiry.objects.all()

        if q:
            qs = qs.filter(
                Q(enquirer_name__icontains=q)
                | Q(enquirer_mobile__icontains=q)
                | Q(patient_name__icontains=q)
            )

        if status_param:
            if status_param not in EnquiryStatus.values:
                raise ValidationError(f"status is invalid. Allowed: {sorted(EnquiryStatus.values)}")
            qs = qs.filter(status=status_param)

        if date_param:
            try:
                day = parse_date_param(date_param, "date")
            except ValueError as e:
                raise ValidationError(str(e))
            qs = qs.filter(created_at__date=day)

        if has_reminder in {"1", "true", "True"}:
            qs = qs.filter(reminder_scheduled_at__isnull=False)
        elif has_reminder in {"0", "false", "False"}:
            qs = qs.filter(reminder_scheduled_at__isnull=True)

        if ordering:
            if ordering not in EnquirySelector.ALLOWED_ORDERING:
                raise ValidationError(f"ordering is invalid. Allowed: {sorted(EnquirySelector.ALLOWED_ORDERING)}")
            qs = qs.order_by(ordering)
        else:
            qs = qs.order_by("-created_at")

        return qs

    @staticmethod
    def pending_enquiries() -> QuerySet[Enquiry]:
        """Notifications page: status == pending, newest first."""
        return Enquiry.objects.filter(status=EnquiryStatus.PENDING).order_by("-created_at")

    @staticmethod
    def with_active_reminders() -> QuerySet[Enquiry]:
        return Enquiry.objects.filter(reminder_scheduled_at__isnull=False).order_by("reminder_scheduled_at")

    @staticmethod
    def recently_expired(*, since: datetime) -> QuerySet[Enquiry]:
        return Enquiry.objects.filter(
            status=EnquiryStatus.PENDING,
            reminder_expired_at__gte=since,
        ).order_by("-reminder_expired_at")

    @staticmethod
    def history(*, enquiry: Enquiry) -> QuerySet[EnquiryDetailEdit]:
        return enquiry.detail_edits.order_by("at", "id")

    @staticmethod
    def timeline(*, enquiry: Enquiry, now: Optional[datetime] = None) -> list[dict]:
        """
        Chronological view of an enquiry:
        created, staff/doctor assignment, details edits, doctor remarks,
        reminder expiry, then the current status and any active reminder.
        """
        now = now or timezone.now()
        items: list[dict] = [
            {
                "code": "created",
                "title": "Enquiry created",
                "at": enquiry.created_at,
                "meta": {"by": enquiry.created_by_email},
            }
        ]

        if enquiry.assigned_staff_at:
            items.append(
                {
                    "code": "staff_assigned",
                    "title": "Staff assigned",
                    "at": enquiry.assigned_staff_at,
                    "meta": {"staff_name": enquiry.assigned_staff},
                }
            )

        if enquiry.assigned_doctor_at:
            items.append(
                {
                    "code": "doctor_assigned",
                    "title": "Doctor assigned",
                    "at": enquiry.assigned_doctor_at,
                    "meta": {"doctor_name": enquiry.assigned_doctor},
                }
            )

        for edit in EnquirySelector.history(enquiry=enquiry):
            items.append(
                {
                    "code": "details_edited",
                    "title": "Details updated",
                    "at": edit.at,
                    "meta": {"text": edit.text, "by_name": edit.author_name, "by_email": edit.author_email},
                }
            )

        if enquiry.doc_remarks_at:
            items.append(
                {
                    "code": "doc_remarks",
                    "title": "Doctor remarks",
                    "at": enquiry.doc_remarks_at,
                    "meta": {"text": enquiry.doc_remarks},
                }
            )

        if enquiry.reminder_expired_at:
            items.append(
                {
                    "code": "reminder_expired",
                    "title": "Reminder expired",
                    "at": enquiry.reminder_expired_at,
                    "meta": {},
                }
            )

        items.sort(key=lambda item: item["at"])

        items.append(
            {
                "code": "status",
                "title": f"Status: {enquiry.get_status_display()}",
                "at": enquiry.updated_at,
                "meta": {"status": enquiry.status},
            }
        )

        reminder = enquiry.reminder
        if reminder is not None:
            items.append(
                {
                    "code": "reminder",
                    "title": f"Reminder set for {reminder.duration_hours}h",
                    "at": reminder.scheduled_at,
                    "meta": {
                        "duration_hours": reminder.duration_hours,
                        "original_status": reminder.original_status,
                        "expires_at": reminder.expires_at,
                        "time_remaining": describe_time_remaining(reminder, now),
                    },
                }
            )

        return items
