from datetime import date, timedelta

import pytest

from vms_core.analytics.selectors import dashboard_summary
from vms_core.conftest import client_for, make_user
from vms_core.enquiries.services import EnquiryService
from vms_core.iam.models import Role
from vms_core.visits.services import VisitService

pytestmark = pytest.mark.django_db

# T0 is 14:30 on Wednesday 2024-05-01 in Asia/Kolkata


@pytest.fixture
def clinic_day(actor, t0, enquiry):
    def visit(name, patient, at, branch="BLR"):
        return VisitService.create_visit(
            actor=actor, visitor_name=name, visitor_mobile="1", patient_name=patient, branch_code=branch, now=at
        )

    visit("Suresh", "Anand", t0)
    visit("Suresh", "Anand", t0 - timedelta(days=1))
    visit("Kiran", "Devi", t0 - timedelta(hours=2), branch="MYS")
    visit("Kiran", "", t0 - timedelta(days=10))

    old = EnquiryService.create_enquiry(
        actor=actor, enquirer_name="Nisha", enquirer_mobile="2", now=t0 - timedelta(days=3)
    )
    EnquiryService.mark_completed(enquiry_id=old.id, actor=actor, now=t0 - timedelta(days=3))


def test_totals_and_status_counts(clinic_day, t0):
    summary = dashboard_summary(now=t0)

    assert summary["totals"] == {"visits": 4, "enquiries": 2, "pending_enquiries": 1, "visits_today": 2}
    assert summary["enquiry_status"] == {"pending": 1, "in_progress": 0, "completed": 1, "cancelled": 0}
    assert summary["visit_status"] == {"checked_in": 4, "checked_out": 0}


def test_weekly_series_covers_last_seven_local_days(clinic_day, t0):
    weekly = dashboard_summary(now=t0)["weekly"]

    assert [d["date"] for d in weekly] == [date(2024, 4, 25) + timedelta(days=i) for i in range(7)]
    assert weekly[-1] == {"date": date(2024, 5, 1), "day": "Wed", "visits": 2, "enquiries": 1}
    assert weekly[5]["visits"] == 1
    assert weekly[3]["enquiries"] == 1
    assert sum(d["visits"] for d in weekly) == 3


def test_patients_visitors_and_peak_hours(clinic_day, t0):
    summary = dashboard_summary(now=t0)

    assert [p["name"] for p in summary["last_visited_patients"]] == ["Anand", "Devi"]
    assert summary["last_visited_patients"][0]["date"] == date(2024, 5, 1)
    assert summary["frequent_visitors"] == [{"name": "Kiran", "count": 2}, {"name": "Suresh", "count": 2}]
    assert summary["peak_hours"] == [{"hour": "14:00", "count": 3}, {"hour": "12:00", "count": 1}]


def test_branch_limits_visit_figures_only(clinic_day, t0):
    summary = dashboard_summary(now=t0, branch_code="BLR")

    assert summary["totals"]["visits"] == 3
    assert summary["totals"]["enquiries"] == 2
    assert summary["frequent_visitors"][0] == {"name": "Suresh", "count": 2}


def test_empty_database_is_zero_filled(db, t0):
    summary = dashboard_summary(now=t0)

    assert summary["totals"]["visits"] == 0
    assert all(d["visits"] == 0 and d["enquiries"] == 0 for d in summary["weekly"])
    assert summary["peak_hours"] == []


def test_summary_endpoint_permissions(clinic_day, api_client, readonly_client):
    res = api_client.get("/api/v1/analytics/summary/")
    assert res.status_code == 200
    assert res.json()["branch_code"] is None

    assert readonly_client.get("/api/v1/analytics/summary/").status_code == 403


def test_branch_admin_is_pinned_to_own_branch(clinic_day):
    client = client_for(make_user("mys-admin", Role.BRANCH_ADMIN, branch_code="MYS"))

    res = client.get("/api/v1/analytics/summary/", {"branch": "BLR"})

    assert res.status_code == 200
    assert res.json()["branch_code"] == "MYS"
    assert res.json()["totals"]["visits"] == 1
