# vms_core/enquiries/api/views.py
from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError as DRFValidationError
from rest_framework.response import Response

from vms_core.common.api.pagination import paginate
from vms_core.common.openapi import device_id_from_request
from vms_core.common.permissions import EnquiryPermission
from vms_core.enquiries.api.serializers import (
    AssignDoctorSerializer,
    AssignStaffSerializer,
    DetailEditSerializer,
    EnquiryCreateSerializer,
    EnquirySerializer,
    EnquiryUpdateSerializer,
    ExpiryAlertSerializer,
    ReminderInputSerializer,
    TextInputSerializer,
    TimelineItemSerializer,
)
from vms_core.enquiries.models import Enquiry
from vms_core.enquiries.selectors import EnquirySelector
from vms_core.enquiries.services import EnquiryService
from vms_core.iam.claims import actor_for_user
from vms_core.reminders.services import ReminderService


def _django_error_detail(e: DjangoValidationError) -> str:
    messages = getattr(e, "messages", None) or [str(e)]
    return messages[0] if len(messages) == 1 else "; ".join(messages)


class EnquiryViewSet(viewsets.ViewSet):
    """
    Thin API layer:
    - input validation via serializers
    - selectors for reads
    - services for writes (lifecycle errors map centrally to 400/409)
    """

    permission_classes = [EnquiryPermission]
    serializer_class = EnquirySerializer
    queryset = Enquiry.objects.none()

    # header documented by VMSAutoSchema for these actions
    device_header_actions = ("alert_check", "pending_alerts")

    def _get_object(self, request, pk) -> Enquiry:
        try:
            enquiry = EnquirySelector.get_enquiry(enquiry_id=pk)
        except EnquirySelector.NotFound:
            raise NotFound("Enquiry not found.")
        self.check_object_permissions(request, enquiry)
        return enquiry

    def _respond(self, enquiry: Enquiry, *, code=status.HTTP_200_OK) -> Response:
        enquiry.refresh_from_db()
        return Response(EnquirySerializer(enquiry).data, status=code)

    # ----------------------------
    # CRUD
    # ----------------------------
    @extend_schema(
        tags=["Enquiries"],
        responses={200: EnquirySerializer(many=True)},
        parameters=[
            OpenApiParameter("q", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="Search enquirer name, mobile or patient name."),
            OpenApiParameter("status", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="pending | in_progress | completed | cancelled"),
            OpenApiParameter("date", OpenApiTypes.DATE, OpenApiParameter.QUERY, required=False,
                             description="Created on this day (YYYY-MM-DD)."),
            OpenApiParameter("has_reminder", OpenApiTypes.BOOL, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("ordering", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="created_at, updated_at or status; prefix with - for descending."),
        ],
    )
    def list(self, request):
        try:
            qs = EnquirySelector.list_enquiries(params=request.query_params)
        except DjangoValidationError as e:
            raise DRFValidationError({"detail": _django_error_detail(e)})
        return paginate(request, qs, EnquirySerializer)

    @extend_schema(tags=["Enquiries"], responses={200: EnquirySerializer(many=True)})
    @action(detail=False, methods=["get"])
    def pending(self, request):
        """Notifications page: pending enquiries, newest first."""
        return paginate(request, EnquirySelector.pending_enquiries(), EnquirySerializer)

    @extend_schema(tags=["Enquiries"], request=EnquiryCreateSerializer, responses={201: EnquirySerializer})
    def create(self, request):
        ser = EnquiryCreateSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        enquiry = EnquiryService.create_enquiry(actor=actor_for_user(request.user), **ser.validated_data)
        return self._respond(enquiry, code=status.HTTP_201_CREATED)

    @extend_schema(tags=["Enquiries"], responses={200: EnquirySerializer})
    def retrieve(self, request, pk=None):
        enquiry = self._get_object(request, pk)
        return Response(EnquirySerializer(enquiry).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Enquiries"], request=EnquiryUpdateSerializer, responses={200: EnquirySerializer})
    def partial_update(self, request, pk=None):
        enquiry = self._get_object(request, pk)

        ser = EnquiryUpdateSerializer(data=request.data or {}, partial=True)
        ser.is_valid(raise_exception=True)

        enquiry = EnquiryService.update_enquiry(
            enquiry_id=enquiry.id,
            actor=actor_for_user(request.user),
            data=ser.validated_data,
        )
        return self._respond(enquiry)

    @extend_schema(tags=["Enquiries"], responses={204: None})
    def destroy(self, request, pk=None):
        enquiry = self._get_object(request, pk)
        EnquiryService.delete_enquiry(enquiry_id=enquiry.id, actor=actor_for_user(request.user))
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ----------------------------
    # Assignment
    # ----------------------------
    @extend_schema(tags=["Enquiries"], request=AssignStaffSerializer, responses={200: EnquirySerializer})
    @action(detail=True, methods=["post"], url_path="assign-staff")
    def assign_staff(self, request, pk=None):
        enquiry = self._get_object(request, pk)
        ser = AssignStaffSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        EnquiryService.assign_staff(
            enquiry_id=enquiry.id,
            staff_name=ser.validated_data["staff_name"],
            actor=actor_for_user(request.user),
        )
        return self._respond(enquiry)

    @extend_schema(tags=["Enquiries"], request=AssignDoctorSerializer, responses={200: EnquirySerializer})
    @action(detail=True, methods=["post"], url_path="assign-doctor")
    def assign_doctor(self, request, pk=None):
        enquiry = self._get_object(request, pk)
        ser = AssignDoctorSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        EnquiryService.assign_doctor(
            enquiry_id=enquiry.id,
            doctor_name=ser.validated_data["doctor_name"],
            actor=actor_for_user(request.user),
        )
        return self._respond(enquiry)

    # ----------------------------
    # Workflow
    # ----------------------------
    @extend_schema(tags=["Enquiries"], request=None, responses={200: EnquirySerializer})
    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        enquiry = self._get_object(request, pk)
        EnquiryService.mark_completed(enquiry_id=enquiry.id, actor=actor_for_user(request.user))
        return self._respond(enquiry)

    @extend_schema(tags=["Enquiries"], request=None, responses={200: EnquirySerializer})
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        enquiry = self._get_object(request, pk)
        EnquiryService.cancel(enquiry_id=enquiry.id, actor=actor_for_user(request.user))
        return self._respond(enquiry)

    # ----------------------------
    # Free text
    # ----------------------------
    @extend_schema(tags=["Enquiries"], request=TextInputSerializer, responses={200: EnquirySerializer})
    @action(detail=True, methods=["post"])
    def details(self, request, pk=None):
        enquiry = self._get_object(request, pk)
        ser = TextInputSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        EnquiryService.edit_details(
            enquiry_id=enquiry.id,
            text=ser.validated_data["text"],
            actor=actor_for_user(request.user),
        )
        return self._respond(enquiry)

    @extend_schema(tags=["Enquiries"], request=TextInputSerializer, responses={200: EnquirySerializer})
    @action(detail=True, methods=["post"], url_path="doc-remarks")
    def doc_remarks(self, request, pk=None):
        enquiry = self._get_object(request, pk)
        ser = TextInputSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        EnquiryService.save_doc_remarks(
            enquiry_id=enquiry.id,
            text=ser.validated_data["text"],
            actor=actor_for_user(request.user),
        )
        return self._respond(enquiry)

    @extend_schema(tags=["Enquiries"], responses={200: DetailEditSerializer(many=True)})
    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        enquiry = self._get_object(request, pk)
        edits = EnquirySelector.history(enquiry=enquiry)
        return Response(DetailEditSerializer(edits, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Enquiries"], responses={200: TimelineItemSerializer(many=True)})
    @action(detail=True, methods=["get"])
    def timeline(self, request, pk=None):
        enquiry = self._get_object(request, pk)
        items = EnquirySelector.timeline(enquiry=enquiry)
        return Response(TimelineItemSerializer(items, many=True).data, status=status.HTTP_200_OK)

    # ----------------------------
    # Reminders
    # ----------------------------
    @extend_schema(tags=["Reminders"], request=ReminderInputSerializer, responses={200: EnquirySerializer})
    @action(detail=True, methods=["post"])
    def reminder(self, request, pk=None):
        enquiry = self._get_object(request, pk)
        ser = ReminderInputSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        EnquiryService.set_reminder(
            enquiry_id=enquiry.id,
            hours=ser.validated_data["hours"],
            actor=actor_for_user(request.user),
        )
        return self._respond(enquiry)

    @extend_schema(tags=["Reminders"], request=None, responses={200: EnquirySerializer})
    @action(detail=True, methods=["post"], url_path="cancel-reminder")
    def cancel_reminder(self, request, pk=None):
        enquiry = self._get_object(request, pk)
        EnquiryService.cancel_reminder(enquiry_id=enquiry.id, actor=actor_for_user(request.user))
        return self._respond(enquiry)

    @extend_schema(
        tags=["Reminders"],
        request=None,
        responses={
            200: ExpiryAlertSerializer,
            204: OpenApiResponse(description="Nothing to show on this device."),
        },
    )
    @action(detail=True, methods=["post"], url_path="alert-check")
    def alert_check(self, request, pk=None):
        enquiry = self._get_object(request, pk)
        alert = ReminderService.check_alert(
            enquiry_id=enquiry.id,
            device_id=device_id_from_request(request),
            actor=actor_for_user(request.user),
        )
        if alert is None:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(ExpiryAlertSerializer(alert).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Reminders"], responses={200: ExpiryAlertSerializer(many=True)})
    @action(detail=False, methods=["get"], url_path="pending-alerts")
    def pending_alerts(self, request):
        alerts = ReminderService.pending_alerts(
            device_id=device_id_from_request(request),
            actor=actor_for_user(request.user),
        )
        return Response(ExpiryAlertSerializer(alerts, many=True).data, status=status.HTTP_200_OK)
