# vms_core/lifecycle/reminders.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from vms_core.lifecycle.records import RecordState, Reminder
from vms_core.lifecycle.states import EnquiryStatus

EXPIRED_TEXT = "Expired - will be reset soon"


def time_remaining(reminder: Reminder, now: datetime) -> timedelta:
    return reminder.expires_at - now


def describe_time_remaining(reminder: Reminder, now: datetime) -> str:
    """
    "2d 5h remaining" / "5h 12m remaining" / "12m remaining",
    or the expired text once the expiry has passed but not been processed yet.
    """
    remaining = time_remaining(reminder, now)
    if remaining <= timedelta(0):
        return EXPIRED_TEXT

    total_minutes = int(remaining.total_seconds() // 60)
    days, rem_minutes = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rem_minutes, 60)

    if days > 0:
        return f"{days}d {hours}h remaining"
    if hours > 0:
        return f"{hours}h {minutes}m remaining"
    return f"{minutes}m remaining"


def is_recent_expiry(record: RecordState, now: datetime, *, window: timedelta) -> bool:
    """
    True when the record went back to pending through a reminder expiry
    within `window` (used for alerts on load / sign-in). A newer reminder
    set since then means the record is deferred again.
    """
    if record.status != EnquiryStatus.PENDING or record.reminder is not None:
        return False
    expired_at: Optional[datetime] = record.reminder_expired_at
    if expired_at is None:
        return False
    return now - expired_at <= window
