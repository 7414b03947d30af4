# vms_core/directory/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import viewsets

from vms_core.common.permissions import DirectoryPermission
from vms_core.directory.api.serializers import BranchSerializer, DoctorSerializer, StaffSerializer
from vms_core.directory.models import Branch, Doctor, Staff
from vms_core.directory.services import DirectoryService
from vms_core.iam.claims import actor_for_user

_DIRECTORY_SCHEMA = {
    action: extend_schema(tags=["Directory"])
    for action in ("list", "retrieve", "create", "partial_update", "destroy")
}


class DirectoryViewSet(viewsets.ModelViewSet):
    """
    Plain CRUD; filtering/search/ordering come from the global DRF filter backends.
    Writes go through DirectoryService so each one is audited.
    """

    permission_classes = [DirectoryPermission]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def perform_create(self, serializer):
        DirectoryService.save(serializer=serializer, actor=actor_for_user(self.request.user))

    def perform_update(self, serializer):
        DirectoryService.save(serializer=serializer, actor=actor_for_user(self.request.user))

    def perform_destroy(self, instance):
        DirectoryService.delete(instance=instance, actor=actor_for_user(self.request.user))


@extend_schema_view(**_DIRECTORY_SCHEMA)
class BranchViewSet(DirectoryViewSet):
    queryset = Branch.objects.all()
    serializer_class = BranchSerializer
    search_fields = ["code", "name"]
    ordering_fields = ["code", "name", "created_at"]


@extend_schema_view(**_DIRECTORY_SCHEMA)
class DoctorViewSet(DirectoryViewSet):
    queryset = Doctor.objects.all()
    serializer_class = DoctorSerializer
    filterset_fields = ["is_active"]
    search_fields = ["name"]
    ordering_fields = ["name", "created_at"]


@extend_schema_view(**_DIRECTORY_SCHEMA)
class StaffViewSet(DirectoryViewSet):
    queryset = Staff.objects.all()
    serializer_class = StaffSerializer
    filterset_fields = ["is_active", "branch_code"]
    search_fields = ["name", "email"]
    ordering_fields = ["name", "created_at"]
