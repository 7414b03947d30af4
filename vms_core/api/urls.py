# vms_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from vms_core.analytics.api.views import AnalyticsSummaryView
from vms_core.audit.api.views import AuditEventViewSet
from vms_core.directory.api.views import BranchViewSet, DoctorViewSet, StaffViewSet
from vms_core.enquiries.api.views import EnquiryViewSet
from vms_core.iam.api.me import MeView
from vms_core.visits.api.views import VisitViewSet

router = DefaultRouter()

# Records
router.register(r"enquiries", EnquiryViewSet, basename="enquiries")
router.register(r"visits", VisitViewSet, basename="visits")

# Directory
router.register(r"doctors", DoctorViewSet, basename="doctors")
router.register(r"staff", StaffViewSet, basename="staff")
router.register(r"branches", BranchViewSet, basename="branches")

router.register(r"audit/events", AuditEventViewSet, basename="audit-events")

urlpatterns = [
    path("me/", MeView.as_view(), name="me"),
    path("analytics/summary/", AnalyticsSummaryView.as_view(), name="analytics-summary"),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
