# vms_core/visits/selectors.py
from __future__ import annotations

from typing import Any, Optional

from django.core.exceptions import ValidationError
from django.db.models import Q, QuerySet

from vms_core.common.timeutils import parse_date_param
from vms_core.visits.models import Visit, VisitDetailEdit, VisitStatus


class VisitSelector:
    class NotFound(Exception):
        pass

    ALLOWED_ORDERING = {"created_at", "-created_at", "visit_date", "-visit_date", "status", "-status"}

    @staticmethod
    def _scoped(branch_code: Optional[str]) -> QuerySet[Visit]:
        qs = Visit.objects.all()
        if branch_code:
            qs = qs.filter(branch_code=branch_code)
        return qs

    @staticmethod
    def get_visit(*, visit_id, branch_code: Optional[str] = None) -> Visit:
        try:
            return VisitSelector._scoped(branch_code).get(id=visit_id)
        except (Visit.DoesNotExist, ValidationError, ValueError):
            raise VisitSelector.NotFound()

    @staticmethod
    def list_visits(*, params: Any, branch_code: Optional[str] = None) -> QuerySet[Visit]:
        """
        Query params supported:
          - q: visitor name / mobile / patient name (icontains)
          - status=checked_in|checked_out
          - date=YYYY-MM-DD (visit day)
          - branch (ignored when the caller is already branch-scoped)
          - ordering in ALLOWED_ORDERING (default -created_at)
        """
        q = (params.get("q") or "").strip()
        status_param = params.get("status")
        date_param = params.get("date")
        branch_param = (params.get("branch") or "").strip()
        ordering = params.get("ordering")

        qs = VisitSelector._scoped(branch_code)

        if q:
            qs = qs.filter(
                Q(visitor_name__icontains=q)
                | Q(visitor_mobile__icontains=q)
                | Q(patient_name__icontains=q)
            )

        if status_param:
            if status_param not in VisitStatus.values:
                raise ValidationError(f"status is invalid. Allowed: {sorted(VisitStatus.values)}")
            qs = qs.filter(status=status_param)

        if date_param:
            try:
                day = parse_date_param(date_param, "date")
            except ValueError as e:
                raise ValidationError(str(e))
            qs = qs.filter(visit_date__date=day)

        if branch_param and not branch_code:
            qs = qs.filter(branch_code=branch_param)

        if ordering:
            if ordering not in VisitSelector.ALLOWED_ORDERING:
                raise ValidationError(f"ordering is invalid. Allowed: {sorted(VisitSelector.ALLOWED_ORDERING)}")
            qs = qs.order_by(ordering)
        else:
            qs = qs.order_by("-created_at")

        return qs

    @staticmethod
    def history(*, visit: Visit) -> QuerySet[VisitDetailEdit]:
        return visit.detail_edits.order_by("at", "id")
