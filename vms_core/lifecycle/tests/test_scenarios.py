"""
End-to-end walks through the engine with an explicit clock.
"""
from datetime import datetime, timedelta, timezone

import pytest

from vms_core.lifecycle import commands as cmd
from vms_core.lifecycle.dedup import should_notify
from vms_core.lifecycle.engine import apply
from vms_core.lifecycle.errors import TransitionRejected
from vms_core.lifecycle.records import SYSTEM_ACTOR, Actor, RecordState
from vms_core.lifecycle.reminders import is_recent_expiry
from vms_core.lifecycle.states import EnquiryStatus, RecordKind

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
FRONT_DESK = Actor(user_id=3, display_name="Asha", email="asha@clinic.test")


def test_follow_up_reminder_brings_completed_enquiry_back_once():
    record = RecordState(kind=RecordKind.ENQUIRY, status=EnquiryStatus.PENDING, pending_since=T0)

    record = apply(record, cmd.AssignStaff("Asha"), now=T0 + timedelta(minutes=1), actor=FRONT_DESK).record
    assert record.status == EnquiryStatus.IN_PROGRESS

    record = apply(record, cmd.MarkCompleted(), now=T0 + timedelta(hours=1), actor=FRONT_DESK).record
    assert record.status == EnquiryStatus.COMPLETED

    set_at = T0 + timedelta(hours=2)
    record = apply(record, cmd.SetReminder(72), now=set_at, actor=FRONT_DESK).record
    assert record.reminder.original_status == EnquiryStatus.COMPLETED

    due = set_at + timedelta(hours=72)
    expired = apply(record, cmd.ExpireReminder(), now=due, actor=SYSTEM_ACTOR)
    record = expired.record

    assert record.status == EnquiryStatus.PENDING
    assert record.pending_since == due
    assert record.reminder is None

    # first viewer gets one alert, a reload a minute later does not
    window = timedelta(hours=24)
    assert is_recent_expiry(record, due, window=window)
    assert should_notify(now=due, device_last_shown=None, record_last_shown=record.last_notification_shown)
    record = apply(record, cmd.RecordNotificationShown(), now=due, actor=FRONT_DESK).record

    later = due + timedelta(minutes=1)
    assert not should_notify(now=later, device_last_shown=due, record_last_shown=record.last_notification_shown)

    # a second sweep finds nothing to do
    assert apply(record, cmd.ExpireReminder(), now=later, actor=SYSTEM_ACTOR).changed is False


def test_complete_on_cancelled_enquiry_is_rejected_without_change():
    record = RecordState(kind=RecordKind.ENQUIRY, status=EnquiryStatus.PENDING, pending_since=T0)
    record = apply(record, cmd.Cancel(), now=T0, actor=FRONT_DESK).record

    with pytest.raises(TransitionRejected):
        apply(record, cmd.MarkCompleted(), now=T0 + timedelta(minutes=5), actor=FRONT_DESK)

    assert record.status == EnquiryStatus.CANCELLED
    assert record.updated_at == T0
