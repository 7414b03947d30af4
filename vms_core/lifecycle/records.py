# vms_core/lifecycle/records.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from vms_core.lifecycle.states import RecordKind, is_valid_status


@dataclass(frozen=True)
class Actor:
    """
    Identity attributed to a mutation.
    Built from the signed-in user at the API boundary (see vms_core.iam.claims).
    """
    user_id: Optional[int]
    display_name: str
    email: str = ""


SYSTEM_ACTOR = Actor(user_id=None, display_name="System", email="")


@dataclass(frozen=True)
class HistoryEntry:
    text: str
    at: datetime
    author_name: str
    author_email: str = ""


@dataclass(frozen=True)
class Reminder:
    """
    Active reminder. A record either holds one of these or None,
    so a half-set reminder cannot be represented.
    """
    scheduled_at: datetime
    duration_hours: int
    original_status: str

    @property
    def expires_at(self) -> datetime:
        return self.scheduled_at + timedelta(hours=self.duration_hours)

    def is_due(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class RecordState:
    """
    Store-independent snapshot of an enquiry or visit.
    Only the fields the lifecycle rules read or write live here.
    """
    kind: RecordKind
    status: str

    assigned_staff: str = ""
    assigned_staff_at: Optional[datetime] = None
    assigned_doctor: str = ""
    assigned_doctor_at: Optional[datetime] = None

    details: str = ""
    history: tuple[HistoryEntry, ...] = ()

    doc_remarks: str = ""
    doc_remarks_at: Optional[datetime] = None

    reminder: Optional[Reminder] = None
    pending_since: Optional[datetime] = None
    last_notification_shown: Optional[datetime] = None
    reminder_expired_at: Optional[datetime] = None

    updated_at: Optional[datetime] = None
    updated_by_id: Optional[int] = None
    updated_by_email: str = ""

    record_id: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        if not is_valid_status(self.kind, self.status):
            raise ValueError(f"Invalid {self.kind.value} status: {self.status!r}")
        if self.kind is RecordKind.VISIT and self.reminder is not None:
            raise ValueError("Visits do not carry reminders.")

    @property
    def has_active_reminder(self) -> bool:
        return self.reminder is not None
