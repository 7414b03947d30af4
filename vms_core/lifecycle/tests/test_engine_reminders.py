from datetime import datetime, timedelta, timezone

import pytest

from vms_core.lifecycle import commands as cmd
from vms_core.lifecycle.engine import apply
from vms_core.lifecycle.errors import InvalidCommand, TransitionRejected
from vms_core.lifecycle.records import Actor, RecordState, Reminder, SYSTEM_ACTOR
from vms_core.lifecycle.states import EnquiryStatus, RecordKind

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
ACTOR = Actor(user_id=7, display_name="Meera", email="meera@clinic.test")


def enquiry(status=EnquiryStatus.PENDING, **kw) -> RecordState:
    return RecordState(kind=RecordKind.ENQUIRY, status=status, **kw)


def with_reminder(hours=24, status=EnquiryStatus.COMPLETED, at=T0) -> RecordState:
    return apply(enquiry(status), cmd.SetReminder(hours), now=at, actor=ACTOR).record


def test_set_reminder_records_original_status():
    record = with_reminder(72, EnquiryStatus.IN_PROGRESS)

    assert record.reminder == Reminder(scheduled_at=T0, duration_hours=72, original_status="in_progress")
    assert record.reminder.expires_at == T0 + timedelta(hours=72)
    assert record.status == EnquiryStatus.IN_PROGRESS


@pytest.mark.parametrize("hours", [0, 1, 48, 168])
def test_set_reminder_rejects_unsupported_duration(hours):
    with pytest.raises(InvalidCommand):
        apply(enquiry(), cmd.SetReminder(hours), now=T0, actor=ACTOR)


def test_set_reminder_while_active_is_rejected():
    record = with_reminder(24)
    with pytest.raises(TransitionRejected) as exc:
        apply(record, cmd.SetReminder(72), now=T0 + timedelta(hours=1), actor=ACTOR)
    assert exc.value.code == "reminder_active"


def test_set_then_cancel_restores_absent_reminder():
    before = enquiry(EnquiryStatus.IN_PROGRESS)
    with_rem = apply(before, cmd.SetReminder(120), now=T0, actor=ACTOR).record
    after = apply(with_rem, cmd.CancelReminder(), now=T0 + timedelta(minutes=1), actor=ACTOR).record

    assert after.reminder is None
    assert after.status == before.status
    assert after.pending_since == before.pending_since


def test_cancel_reminder_without_one_is_noop():
    out = apply(enquiry(), cmd.CancelReminder(), now=T0, actor=ACTOR)
    assert out.changed is False


def test_expiry_one_second_early_does_nothing():
    record = with_reminder(24)
    out = apply(record, cmd.ExpireReminder(), now=T0 + timedelta(hours=24, seconds=-1), actor=SYSTEM_ACTOR)

    assert out.changed is False
    assert out.record.reminder is not None
    assert out.record.status == EnquiryStatus.COMPLETED


def test_expiry_resets_to_pending_exactly_once():
    record = with_reminder(24)
    at = T0 + timedelta(hours=24, seconds=1)

    first = apply(record, cmd.ExpireReminder(), now=at, actor=SYSTEM_ACTOR)
    second = apply(first.record, cmd.ExpireReminder(), now=at, actor=SYSTEM_ACTOR)

    assert first.changed is True
    assert first.record.status == EnquiryStatus.PENDING
    assert first.record.pending_since == at
    assert first.record.reminder is None
    assert first.record.last_notification_shown is None
    assert first.record.reminder_expired_at == at
    assert first.record.updated_by_id is None
    assert [e.code for e in first.effects] == ["reminder_expired", "status_changed"]
    assert first.effects[0].meta["original_status"] == "completed"

    assert second.changed is False


def test_expiry_clears_previous_notification_marker():
    record = with_reminder(24)
    record = apply(record, cmd.RecordNotificationShown(), now=T0 + timedelta(hours=1), actor=ACTOR).record
    assert record.last_notification_shown is not None

    out = apply(record, cmd.ExpireReminder(), now=T0 + timedelta(hours=25), actor=SYSTEM_ACTOR)
    assert out.record.last_notification_shown is None


def test_expiry_of_pending_reminder_refreshes_pending_since_without_status_effect():
    record = apply(enquiry(pending_since=T0 - timedelta(days=3)), cmd.SetReminder(24), now=T0, actor=ACTOR).record
    out = apply(record, cmd.ExpireReminder(), now=T0 + timedelta(hours=24), actor=SYSTEM_ACTOR)

    assert out.record.pending_since == T0 + timedelta(hours=24)
    assert [e.code for e in out.effects] == ["reminder_expired"]


def test_reminders_are_enquiry_only():
    visit = RecordState(kind=RecordKind.VISIT, status="checked_in")
    with pytest.raises(InvalidCommand):
        apply(visit, cmd.SetReminder(24), now=T0, actor=ACTOR)
    assert apply(visit, cmd.ExpireReminder(), now=T0, actor=SYSTEM_ACTOR).changed is False
