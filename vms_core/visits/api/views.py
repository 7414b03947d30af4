# vms_core/visits/api/views.py
from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError as DRFValidationError
from rest_framework.response import Response

from vms_core.common.api.pagination import paginate
from vms_core.common.permissions import VisitPermission
from vms_core.enquiries.api.serializers import AssignDoctorSerializer, TextInputSerializer
from vms_core.iam.claims import actor_for_user, branch_scope_for
from vms_core.visits.api.serializers import (
    AttendSerializer,
    VisitCreateSerializer,
    VisitDetailEditSerializer,
    VisitSerializer,
    VisitUpdateSerializer,
)
from vms_core.visits.models import Visit
from vms_core.visits.selectors import VisitSelector
from vms_core.visits.services import VisitService


class VisitViewSet(viewsets.ViewSet):
    """
    Visits, limited to the caller's branch when their profile carries one.
    """

    permission_classes = [VisitPermission]
    serializer_class = VisitSerializer
    queryset = Visit.objects.none()

    def _get_object(self, request, pk) -> Visit:
        try:
            visit = VisitSelector.get_visit(visit_id=pk, branch_code=branch_scope_for(request.user))
        except VisitSelector.NotFound:
            raise NotFound("Visit not found.")
        self.check_object_permissions(request, visit)
        return visit

    def _respond(self, visit: Visit, *, code=status.HTTP_200_OK) -> Response:
        visit.refresh_from_db()
        return Response(VisitSerializer(visit).data, status=code)

    # ----------------------------
    # CRUD
    # ----------------------------
    @extend_schema(
        tags=["Visits"],
        responses={200: VisitSerializer(many=True)},
        parameters=[
            OpenApiParameter("q", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="Search visitor name, mobile or patient name."),
            OpenApiParameter("status", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             description="checked_in | checked_out"),
            OpenApiParameter("date", OpenApiTypes.DATE, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("branch", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("ordering", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        try:
            qs = VisitSelector.list_visits(params=request.query_params, branch_code=branch_scope_for(request.user))
        except DjangoValidationError as e:
            raise DRFValidationError({"detail": e.messages[0] if e.messages else str(e)})
        return paginate(request, qs, VisitSerializer)

    @extend_schema(tags=["Visits"], request=VisitCreateSerializer, responses={201: VisitSerializer})
    def create(self, request):
        ser = VisitCreateSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        data = dict(ser.validated_data)
        scope = branch_scope_for(request.user)
        if scope:
            data["branch_code"] = scope

        visit = VisitService.create_visit(actor=actor_for_user(request.user), **data)
        return self._respond(visit, code=status.HTTP_201_CREATED)

    @extend_schema(tags=["Visits"], responses={200: VisitSerializer})
    def retrieve(self, request, pk=None):
        visit = self._get_object(request, pk)
        return Response(VisitSerializer(visit).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Visits"], request=VisitUpdateSerializer, responses={200: VisitSerializer})
    def partial_update(self, request, pk=None):
        visit = self._get_object(request, pk)

        ser = VisitUpdateSerializer(data=request.data or {}, partial=True)
        ser.is_valid(raise_exception=True)

        data = dict(ser.validated_data)
        if branch_scope_for(request.user):
            # branch-scoped users cannot move visits elsewhere
            data.pop("branch_code", None)

        visit = VisitService.update_visit(visit_id=visit.id, actor=actor_for_user(request.user), data=data)
        return self._respond(visit)

    @extend_schema(tags=["Visits"], responses={204: None})
    def destroy(self, request, pk=None):
        visit = self._get_object(request, pk)
        VisitService.delete_visit(visit_id=visit.id, actor=actor_for_user(request.user))
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ----------------------------
    # Check-in / check-out
    # ----------------------------
    @extend_schema(tags=["Visits"], request=None, responses={200: VisitSerializer})
    @action(detail=True, methods=["post"], url_path="check-in")
    def check_in(self, request, pk=None):
        visit = self._get_object(request, pk)
        VisitService.check_in(visit_id=visit.id, actor=actor_for_user(request.user))
        return self._respond(visit)

    @extend_schema(tags=["Visits"], request=None, responses={200: VisitSerializer})
    @action(detail=True, methods=["post"], url_path="check-out")
    def check_out(self, request, pk=None):
        visit = self._get_object(request, pk)
        VisitService.check_out(visit_id=visit.id, actor=actor_for_user(request.user))
        return self._respond(visit)

    # ----------------------------
    # Attendance / notes
    # ----------------------------
    @extend_schema(tags=["Visits"], request=AttendSerializer, responses={200: VisitSerializer})
    @action(detail=True, methods=["post"])
    def attend(self, request, pk=None):
        visit = self._get_object(request, pk)
        ser = AttendSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        VisitService.attend(
            visit_id=visit.id,
            staff_name=ser.validated_data["staff_name"],
            actor=actor_for_user(request.user),
        )
        return self._respond(visit)

    @extend_schema(tags=["Visits"], request=AssignDoctorSerializer, responses={200: VisitSerializer})
    @action(detail=True, methods=["post"], url_path="assign-doctor")
    def assign_doctor(self, request, pk=None):
        visit = self._get_object(request, pk)
        ser = AssignDoctorSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        VisitService.assign_doctor(
            visit_id=visit.id,
            doctor_name=ser.validated_data["doctor_name"],
            actor=actor_for_user(request.user),
        )
        return self._respond(visit)

    @extend_schema(tags=["Visits"], request=TextInputSerializer, responses={200: VisitSerializer})
    @action(detail=True, methods=["post"])
    def details(self, request, pk=None):
        visit = self._get_object(request, pk)
        ser = TextInputSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        VisitService.edit_details(visit_id=visit.id, text=ser.validated_data["text"], actor=actor_for_user(request.user))
        return self._respond(visit)

    @extend_schema(tags=["Visits"], request=TextInputSerializer, responses={200: VisitSerializer})
    @action(detail=True, methods=["post"], url_path="doc-remarks")
    def doc_remarks(self, request, pk=None):
        visit = self._get_object(request, pk)
        ser = TextInputSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        VisitService.save_doc_remarks(
            visit_id=visit.id,
            text=ser.validated_data["text"],
            actor=actor_for_user(request.user),
        )
        return self._respond(visit)

    @extend_schema(tags=["Visits"], responses={200: VisitDetailEditSerializer(many=True)})
    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        visit = self._get_object(request, pk)
        edits = VisitSelector.history(visit=visit)
        return Response(VisitDetailEditSerializer(edits, many=True).data, status=status.HTTP_200_OK)
