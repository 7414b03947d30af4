from datetime import timedelta

import pytest

from vms_core.audit.models import AuditEvent
from vms_core.enquiries.models import EnquiryStatus
from vms_core.enquiries.services import EnquiryService
from vms_core.reminders.services import ReminderService

pytestmark = pytest.mark.django_db


@pytest.fixture
def reminded(enquiry, actor, t0):
    EnquiryService.mark_completed(enquiry_id=enquiry.id, actor=actor, now=t0)
    EnquiryService.set_reminder(enquiry_id=enquiry.id, hours=24, actor=actor, now=t0)
    enquiry.refresh_from_db()
    return enquiry


def test_sweep_one_second_before_expiry_does_nothing(reminded, t0):
    run = ReminderService.process_due(now=t0 + timedelta(hours=24, seconds=-1))

    assert run.checked == 1
    assert run.expired == []
    reminded.refresh_from_db()
    assert reminded.status == EnquiryStatus.COMPLETED
    assert reminded.reminder is not None


def test_sweep_after_expiry_resets_exactly_once(reminded, t0):
    at = t0 + timedelta(hours=24, seconds=1)

    first = ReminderService.process_due(now=at)
    second = ReminderService.process_due(now=at)

    assert first.expired == [reminded.id]
    assert second.checked == 0
    assert second.expired == []

    reminded.refresh_from_db()
    assert reminded.status == EnquiryStatus.PENDING
    assert reminded.pending_since == at
    assert reminded.reminder_scheduled_at is None
    assert reminded.reminder_duration_hours is None
    assert reminded.original_status == ""
    assert reminded.reminder_expired_at == at
    assert reminded.updated_by_id is None

    assert AuditEvent.objects.filter(entity_id=reminded.id, event_code="enquiry.reminder_expired").count() == 1


def test_direct_expiry_is_idempotent(reminded, t0):
    at = t0 + timedelta(hours=25)
    assert EnquiryService.expire_reminder(enquiry_id=reminded.id, now=at) is True
    assert EnquiryService.expire_reminder(enquiry_id=reminded.id, now=at) is False


def test_one_failing_record_does_not_block_others(reminded, actor, t0, monkeypatch):
    other = EnquiryService.create_enquiry(actor=actor, enquirer_name="B", enquirer_mobile="2", now=t0)
    EnquiryService.set_reminder(enquiry_id=other.id, hours=24, actor=actor, now=t0)

    real_expire = EnquiryService.expire_reminder

    def flaky(*, enquiry_id, **kwargs):
        if enquiry_id == reminded.id:
            raise RuntimeError("database hiccup")
        return real_expire(enquiry_id=enquiry_id, **kwargs)

    monkeypatch.setattr(EnquiryService, "expire_reminder", staticmethod(flaky))

    run = ReminderService.process_due(now=t0 + timedelta(hours=25))

    assert run.failed == [reminded.id]
    assert run.expired == [other.id]

    reminded.refresh_from_db()
    assert reminded.reminder is not None
