# vms_core/enquiries/api/serializers.py
from __future__ import annotations

from django.utils import timezone
from rest_framework import serializers

from vms_core.enquiries.models import Enquiry, EnquiryDetailEdit, EnquiryStatus
from vms_core.lifecycle.reminders import describe_time_remaining
from vms_core.lifecycle.states import REMINDER_DURATIONS_HOURS


class DetailEditSerializer(serializers.ModelSerializer):
    by_name = serializers.CharField(source="author_name", read_only=True)
    by_email = serializers.CharField(source="author_email", read_only=True)

    class Meta:
        model = EnquiryDetailEdit
        fields = ["id", "text", "at", "by_name", "by_email"]
        read_only_fields = fields


class ReminderSerializer(serializers.Serializer):
    scheduled_at = serializers.DateTimeField()
    duration_hours = serializers.IntegerField()
    original_status = serializers.CharField()
    expires_at = serializers.DateTimeField()
    time_remaining = serializers.SerializerMethodField()

    def get_time_remaining(self, obj) -> str:
        now = self.context.get("now") or timezone.now()
        return describe_time_remaining(obj, now)


class EnquirySerializer(serializers.ModelSerializer):
    reminder = serializers.SerializerMethodField()
    created_by_id = serializers.IntegerField(read_only=True, allow_null=True)
    updated_by_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Enquiry
        fields = [
            "id",
            "enquirer_name",
            "enquirer_mobile",
            "patient_name",
            "status",
            "assigned_staff",
            "assigned_staff_at",
            "assigned_doctor",
            "assigned_doctor_at",
            "details",
            "doc_remarks",
            "doc_remarks_at",
            "reminder",
            "pending_since",
            "last_notification_shown",
            "reminder_expired_at",
            "created_at",
            "created_by_id",
            "created_by_email",
            "updated_at",
            "updated_by_id",
            "updated_by_email",
        ]
        read_only_fields = fields

    def get_reminder(self, obj: Enquiry) -> dict | None:
        reminder = obj.reminder
        if reminder is None:
            return None
        return ReminderSerializer(reminder, context=self.context).data


class EnquiryCreateSerializer(serializers.Serializer):
    enquirer_name = serializers.CharField(max_length=255)
    enquirer_mobile = serializers.CharField(max_length=32)
    patient_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    details = serializers.CharField(required=False, allow_blank=True, default="")
    status = serializers.ChoiceField(choices=EnquiryStatus.choices, required=False, default=EnquiryStatus.PENDING)


class EnquiryUpdateSerializer(serializers.Serializer):
    enquirer_name = serializers.CharField(max_length=255, required=False)
    enquirer_mobile = serializers.CharField(max_length=32, required=False)
    patient_name = serializers.CharField(max_length=255, required=False, allow_blank=True)


class AssignStaffSerializer(serializers.Serializer):
    staff_name = serializers.CharField(max_length=255)


class AssignDoctorSerializer(serializers.Serializer):
    doctor_name = serializers.CharField(max_length=255)


class TextInputSerializer(serializers.Serializer):
    text = serializers.CharField(allow_blank=True, trim_whitespace=False)


class ReminderInputSerializer(serializers.Serializer):
    hours = serializers.IntegerField(help_text=f"One of {list(REMINDER_DURATIONS_HOURS)}.")


class TimelineItemSerializer(serializers.Serializer):
    code = serializers.CharField()
    title = serializers.CharField()
    at = serializers.DateTimeField(allow_null=True)
    meta = serializers.DictField()


class ExpiryAlertSerializer(serializers.Serializer):
    enquiry_id = serializers.UUIDField()
    enquirer_name = serializers.CharField()
    enquirer_mobile = serializers.CharField()
    patient_name = serializers.CharField()
    pending_since = serializers.DateTimeField(allow_null=True)
    expired_at = serializers.DateTimeField()
    message = serializers.CharField()
