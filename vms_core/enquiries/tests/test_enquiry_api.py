from datetime import timedelta

import pytest
from django.utils import timezone

from vms_core.enquiries.models import Enquiry, EnquiryStatus
from vms_core.enquiries.services import EnquiryService

pytestmark = pytest.mark.django_db

BASE = "/api/v1/enquiries/"


def test_create_and_retrieve(api_client):
    res = api_client.post(
        BASE,
        {"enquirer_name": "Ravi", "enquirer_mobile": "9876500000", "patient_name": "Lakshmi"},
        format="json",
    )
    assert res.status_code == 201, res.content
    body = res.json()
    assert body["status"] == "pending"
    assert body["pending_since"] is not None
    assert body["reminder"] is None
    assert body["created_by_email"] == "frontdesk@clinic.test"

    res = api_client.get(f"{BASE}{body['id']}/")
    assert res.status_code == 200
    assert res.json()["enquirer_name"] == "Ravi"


def test_create_requires_names(api_client):
    res = api_client.post(BASE, {"enquirer_name": "Ravi"}, format="json")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "validation_error"


def test_list_filters_and_pagination(api_client, actor, t0):
    for name, status in [("A", "pending"), ("B", "in_progress"), ("C", "pending")]:
        EnquiryService.create_enquiry(actor=actor, enquirer_name=name, enquirer_mobile="9", status=status, now=t0)

    res = api_client.get(BASE, {"status": "pending"})
    assert res.status_code == 200
    body = res.json()
    assert body["count"] == 2
    assert {r["enquirer_name"] for r in body["results"]} == {"A", "C"}

    res = api_client.get(BASE, {"q": "b"})
    assert [r["enquirer_name"] for r in res.json()["results"]] == ["B"]

    res = api_client.get(BASE, {"status": "nope"})
    assert res.status_code == 400


def test_pending_listing_newest_first(api_client, actor, t0):
    older = EnquiryService.create_enquiry(actor=actor, enquirer_name="Old", enquirer_mobile="1", now=t0)
    newer = EnquiryService.create_enquiry(
        actor=actor, enquirer_name="New", enquirer_mobile="2", now=t0 + timedelta(hours=1)
    )
    EnquiryService.create_enquiry(
        actor=actor, enquirer_name="Busy", enquirer_mobile="3", status="in_progress", now=t0
    )

    res = api_client.get(f"{BASE}pending/")
    assert res.status_code == 200
    ids = [r["id"] for r in res.json()["results"]]
    assert ids == [str(newer.id), str(older.id)]


def test_assign_staff_then_complete(api_client, enquiry):
    res = api_client.post(f"{BASE}{enquiry.id}/assign-staff/", {"staff_name": "Asha"}, format="json")
    assert res.status_code == 200
    assert res.json()["status"] == "in_progress"
    assert res.json()["assigned_staff"] == "Asha"

    res = api_client.post(f"{BASE}{enquiry.id}/complete/")
    assert res.status_code == 200
    assert res.json()["status"] == "completed"


def test_complete_cancelled_returns_conflict_envelope(api_client, enquiry):
    api_client.post(f"{BASE}{enquiry.id}/cancel/")

    res = api_client.post(f"{BASE}{enquiry.id}/complete/", HTTP_X_REQUEST_ID="req-123")
    assert res.status_code == 409
    err = res.json()["error"]
    assert err["code"] == "conflict"
    assert err["details"] == {"rule": "not_actionable"}
    assert err["request_id"] == "req-123"

    enquiry.refresh_from_db()
    assert enquiry.status == EnquiryStatus.CANCELLED


def test_reminder_endpoints(api_client, enquiry):
    res = api_client.post(f"{BASE}{enquiry.id}/reminder/", {"hours": 72}, format="json")
    assert res.status_code == 200
    reminder = res.json()["reminder"]
    assert reminder["duration_hours"] == 72
    assert reminder["original_status"] == "pending"
    assert reminder["time_remaining"].endswith("remaining")

    res = api_client.post(f"{BASE}{enquiry.id}/reminder/", {"hours": 24}, format="json")
    assert res.status_code == 409
    assert res.json()["error"]["details"] == {"rule": "reminder_active"}

    res = api_client.post(f"{BASE}{enquiry.id}/cancel-reminder/")
    assert res.status_code == 200
    assert res.json()["reminder"] is None


def test_reminder_with_unsupported_hours_is_validation_error(api_client, enquiry):
    res = api_client.post(f"{BASE}{enquiry.id}/reminder/", {"hours": 10}, format="json")
    assert res.status_code == 400
    assert res.json()["error"]["details"] == {"rule": "invalid_command"}


def test_details_history_and_timeline(api_client, enquiry):
    api_client.post(f"{BASE}{enquiry.id}/details/", {"text": "Wants OPD timings"}, format="json")
    api_client.post(f"{BASE}{enquiry.id}/details/", {"text": "Wants OPD timings"}, format="json")
    api_client.post(f"{BASE}{enquiry.id}/assign-doctor/", {"doctor_name": "Mehta"}, format="json")
    api_client.post(f"{BASE}{enquiry.id}/doc-remarks/", {"text": "Ok for Tuesday"}, format="json")

    res = api_client.get(f"{BASE}{enquiry.id}/history/")
    assert res.status_code == 200
    history = res.json()
    assert len(history) == 2
    assert history[0]["by_name"] == "Meera Rao"

    res = api_client.get(f"{BASE}{enquiry.id}/timeline/")
    assert res.status_code == 200
    codes = [item["code"] for item in res.json()]
    assert codes[0] == "created"
    assert codes.count("details_edited") == 2
    assert "doctor_assigned" in codes
    assert "doc_remarks" in codes
    assert codes[-1] == "status"


def test_patch_ignores_status(api_client, enquiry):
    res = api_client.patch(f"{BASE}{enquiry.id}/", {"patient_name": "L. Devi", "status": "completed"}, format="json")
    assert res.status_code == 200
    assert res.json()["patient_name"] == "L. Devi"
    assert res.json()["status"] == "pending"


def test_unknown_id_is_404(api_client):
    res = api_client.get(f"{BASE}00000000-0000-0000-0000-000000000000/")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "not_found"

    res = api_client.get(f"{BASE}not-a-uuid/")
    assert res.status_code == 404


def test_alert_check_after_expiry_then_deduplicated(api_client, actor, device_headers):
    now = timezone.now()
    e = EnquiryService.create_enquiry(
        actor=actor, enquirer_name="Ravi", enquirer_mobile="1", now=now - timedelta(hours=30)
    )
    EnquiryService.set_reminder(enquiry_id=e.id, hours=24, actor=actor, now=now - timedelta(hours=25))

    res = api_client.post(f"{BASE}{e.id}/alert-check/", **device_headers)
    assert res.status_code == 200, res.content
    assert res.json()["enquiry_id"] == str(e.id)

    res = api_client.post(f"{BASE}{e.id}/alert-check/", **device_headers)
    assert res.status_code == 204

    e.refresh_from_db()
    assert e.status == EnquiryStatus.PENDING
    assert e.reminder is None


def test_pending_alerts_lists_each_expired_enquiry_once(api_client, actor, device_headers):
    now = timezone.now()
    for name in ("A", "B"):
        e = EnquiryService.create_enquiry(actor=actor, enquirer_name=name, enquirer_mobile="1", now=now - timedelta(days=2))
        EnquiryService.set_reminder(enquiry_id=e.id, hours=24, actor=actor, now=now - timedelta(hours=24, minutes=5))

    res = api_client.get(f"{BASE}pending-alerts/", **device_headers)
    assert res.status_code == 200
    assert {a["enquirer_name"] for a in res.json()} == {"A", "B"}

    res = api_client.get(f"{BASE}pending-alerts/", **device_headers)
    assert res.json() == []

    assert Enquiry.objects.filter(status=EnquiryStatus.PENDING, reminder_scheduled_at__isnull=True).count() == 2
