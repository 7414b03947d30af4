# vms_core/analytics/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from vms_core.analytics.selectors import dashboard_summary
from vms_core.common.permissions import AnalyticsPermission
from vms_core.iam.claims import branch_scope_for


class AnalyticsSummaryView(APIView):
    permission_classes = [AnalyticsPermission]

    @extend_schema(
        tags=["Analytics"],
        responses={200: OpenApiTypes.OBJECT},
        parameters=[
            OpenApiParameter(
                name="branch",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Limit visit figures to one branch (ignored for branch-scoped users).",
            ),
        ],
    )
    def get(self, request):
        """
        Totals, status counts, last 7 days, recent patients, frequent visitors, peak hours.
        """
        branch_code = branch_scope_for(request.user) or (request.query_params.get("branch") or "").strip() or None
        return Response(dashboard_summary(branch_code=branch_code), status=status.HTTP_200_OK)
