import pytest

from vms_core.audit.models import AuditEvent
from vms_core.enquiries.services import EnquiryService

pytestmark = pytest.mark.django_db

URL = "/api/v1/audit/events/"


def test_events_are_immutable(enquiry):
    event = AuditEvent.objects.filter(entity_id=enquiry.id).first()
    event.metadata = {"x": 1}
    with pytest.raises(ValueError):
        event.save()


def test_admin_lists_and_filters(admin_client, enquiry, actor):
    EnquiryService.assign_staff(enquiry_id=enquiry.id, staff_name="Asha", actor=actor)

    res = admin_client.get(URL, {"entity_id": str(enquiry.id)})
    assert res.status_code == 200
    codes = {e["event_code"] for e in res.json()}
    assert {"enquiry.created", "enquiry.staff_assigned", "enquiry.status_changed"} <= codes

    res = admin_client.get(URL, {"event_code": "enquiry.staff_assigned"})
    assert len(res.json()) == 1
    assert res.json()[0]["actor_name"] == "Meera Rao"
    assert res.json()[0]["actor_user_id"] == actor.user_id


def test_limit_is_clamped(admin_client, enquiry):
    res = admin_client.get(URL, {"limit": "0"})
    assert len(res.json()) == 1


def test_bad_filters_are_400(admin_client):
    res = admin_client.get(URL, {"entity_id": "nope"})
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Invalid entity_id (UUID expected)"

    assert admin_client.get(URL, {"actor_user_id": "x"}).status_code == 400


def test_staff_cannot_read_audit(api_client):
    assert api_client.get(URL).status_code == 403
