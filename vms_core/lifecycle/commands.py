# vms_core/lifecycle/commands.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AssignStaff:
    staff_name: str


@dataclass(frozen=True)
class AssignDoctor:
    doctor_name: str


@dataclass(frozen=True)
class MarkCompleted:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class EditDetails:
    text: str


@dataclass(frozen=True)
class SaveDoctorRemarks:
    text: str


@dataclass(frozen=True)
class SetReminder:
    hours: int


@dataclass(frozen=True)
class CancelReminder:
    pass


@dataclass(frozen=True)
class ExpireReminder:
    """Periodic / on-load expiry check. Safe to issue any number of times."""
    pass


@dataclass(frozen=True)
class RecordNotificationShown:
    pass
