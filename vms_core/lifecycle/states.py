# vms_core/lifecycle/states.py
from __future__ import annotations

from enum import Enum


class RecordKind(str, Enum):
    ENQUIRY = "enquiry"
    VISIT = "visit"


class EnquiryStatus:
    """
    Status strings for enquiries.
    Keep values aligned with Enquiry.status choices.
    """
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    ALL = frozenset({PENDING, IN_PROGRESS, COMPLETED, CANCELLED})
    ACTIONABLE = frozenset({PENDING, IN_PROGRESS})
    TERMINAL = frozenset({COMPLETED, CANCELLED})


class VisitStatus:
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"

    ALL = frozenset({CHECKED_IN, CHECKED_OUT})


STATUSES_BY_KIND = {
    RecordKind.ENQUIRY: EnquiryStatus.ALL,
    RecordKind.VISIT: VisitStatus.ALL,
}

# Reminder durations offered to staff (hours).
REMINDER_DURATIONS_HOURS = (24, 72, 120)


def is_valid_status(kind: RecordKind, status: str) -> bool:
    return status in STATUSES_BY_KIND[kind]
