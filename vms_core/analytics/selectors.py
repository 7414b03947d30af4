# vms_core/analytics/selectors.py
from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Optional

from django.db.models import Count
from django.db.models.functions import ExtractHour, TruncDate
from django.utils import timezone

from vms_core.enquiries.models import Enquiry, EnquiryStatus
from vms_core.visits.models import Visit, VisitStatus

WEEK_DAYS = 7
RECENT_PATIENTS = 5
FREQUENT_VISITORS = 5
PEAK_HOURS = 6


def _counts_by(qs, field: str) -> dict:
    return {row[field]: row["n"] for row in qs.values(field).annotate(n=Count("id")).order_by()}


def weekly_series(*, visits, enquiries, today) -> list[dict]:
    """
    Last 7 local days (oldest first): visits by visit date, enquiries by creation.
    """
    start_day = today - timedelta(days=WEEK_DAYS - 1)
    start = timezone.make_aware(datetime.combine(start_day, time.min))

    visit_counts = _counts_by(visits.filter(visit_date__gte=start).annotate(day=TruncDate("visit_date")), "day")
    enquiry_counts = _counts_by(enquiries.filter(created_at__gte=start).annotate(day=TruncDate("created_at")), "day")

    series = []
    for offset in range(WEEK_DAYS):
        day = start_day + timedelta(days=offset)
        series.append(
            {
                "date": day,
                "day": day.strftime("%a"),
                "visits": visit_counts.get(day, 0),
                "enquiries": enquiry_counts.get(day, 0),
            }
        )
    return series


def last_visited_patients(visits) -> list[dict]:
    """Most recent visit per patient name, newest first."""
    seen: set[str] = set()
    out: list[dict] = []
    qs = visits.exclude(patient_name="").order_by("-visit_date").values_list("patient_name", "visit_date")
    for name, visit_date in qs.iterator():
        if name in seen:
            continue
        seen.add(name)
        out.append({"name": name, "date": timezone.localdate(visit_date)})
        if len(out) == RECENT_PATIENTS:
            break
    return out


def frequent_visitors(visits) -> list[dict]:
    rows = (
        visits.exclude(visitor_name="")
        .values("visitor_name")
        .annotate(count=Count("id"))
        .order_by("-count", "visitor_name")[:FREQUENT_VISITORS]
    )
    return [{"name": r["visitor_name"], "count": r["count"]} for r in rows]


def peak_hours(visits) -> list[dict]:
    """Check-in hour (local time) buckets, busiest first."""
    rows = (
        visits.annotate(hour=ExtractHour("check_in_time"))
        .values("hour")
        .annotate(count=Count("id"))
        .order_by("-count", "hour")[:PEAK_HOURS]
    )
    return [{"hour": f"{r['hour']}:00", "count": r["count"]} for r in rows]


def dashboard_summary(*, now: Optional[datetime] = None, branch_code: Optional[str] = None) -> dict:
    """
    Dashboard numbers. Visits are limited to branch_code when given;
    enquiries are not branch-bound.
    """
    now = now or timezone.now()
    today = timezone.localdate(now)

    visits = Visit.objects.all()
    if branch_code:
        visits = visits.filter(branch_code=branch_code)
    enquiries = Enquiry.objects.all()

    enquiry_status = {value: 0 for value in EnquiryStatus.values}
    enquiry_status.update(_counts_by(enquiries, "status"))
    visit_status = {value: 0 for value in VisitStatus.values}
    visit_status.update(_counts_by(visits, "status"))

    return {
        "generated_at": now,
        "branch_code": branch_code,
        "totals": {
            "visits": visits.count(),
            "enquiries": enquiries.count(),
            "pending_enquiries": enquiry_status[EnquiryStatus.PENDING],
            "visits_today": visits.filter(visit_date__date=today).count(),
        },
        "enquiry_status": enquiry_status,
        "visit_status": visit_status,
        "weekly": weekly_series(visits=visits, enquiries=enquiries, today=today),
        "last_visited_patients": last_visited_patients(visits),
        "frequent_visitors": frequent_visitors(visits),
        "peak_hours": peak_hours(visits),
    }
