# vms_core/visits/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from vms_core.visits.models import Visit, VisitDetailEdit


class VisitDetailEditSerializer(serializers.ModelSerializer):
    by_name = serializers.CharField(source="author_name", read_only=True)
    by_email = serializers.CharField(source="author_email", read_only=True)

    class Meta:
        model = VisitDetailEdit
        fields = ["id", "text", "at", "by_name", "by_email"]
        read_only_fields = fields


class VisitSerializer(serializers.ModelSerializer):
    attended_by = serializers.CharField(source="assigned_staff", read_only=True)
    attended_at = serializers.DateTimeField(source="assigned_staff_at", read_only=True, allow_null=True)

    class Meta:
        model = Visit
        fields = [
            "id",
            "visitor_name",
            "visitor_mobile",
            "patient_name",
            "status",
            "branch_code",
            "visit_date",
            "check_in_time",
            "check_out_time",
            "admin_check_in_time",
            "admin_check_out_time",
            "visitor_check_out_time",
            "attended_by",
            "attended_at",
            "assigned_doctor",
            "assigned_doctor_at",
            "details",
            "doc_remarks",
            "doc_remarks_at",
            "created_at",
            "created_by_email",
            "updated_at",
            "updated_by_email",
        ]
        read_only_fields = fields


class VisitCreateSerializer(serializers.Serializer):
    visitor_name = serializers.CharField(max_length=255)
    visitor_mobile = serializers.CharField(max_length=32)
    patient_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    details = serializers.CharField(required=False, allow_blank=True, default="")
    branch_code = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")


class VisitUpdateSerializer(serializers.Serializer):
    visitor_name = serializers.CharField(max_length=255, required=False)
    visitor_mobile = serializers.CharField(max_length=32, required=False)
    patient_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    branch_code = serializers.CharField(max_length=32, required=False, allow_blank=True)


class AttendSerializer(serializers.Serializer):
    staff_name = serializers.CharField(max_length=255)
