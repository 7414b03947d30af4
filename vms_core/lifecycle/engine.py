# vms_core/lifecycle/engine.py
"""
Enquiry / visit lifecycle rules.

Pure functions over frozen records: nothing here reads the clock or touches
the database. Callers pass `now` and the acting identity, then persist the
returned record.

    outcome = apply(record, AssignStaff("Asha"), now=now, actor=actor)
    outcome.record   # new RecordState
    outcome.effects  # what happened, for audit/logging
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Dict

from vms_core.lifecycle import commands as cmd
from vms_core.lifecycle.errors import InvalidCommand, TransitionRejected
from vms_core.lifecycle.records import Actor, HistoryEntry, RecordState, Reminder
from vms_core.lifecycle.states import REMINDER_DURATIONS_HOURS, EnquiryStatus, RecordKind

DOCTOR_PREFIX = "Dr. "


@dataclass(frozen=True)
class Effect:
    code: str
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Outcome:
    record: RecordState
    effects: tuple[Effect, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.effects)


def doctor_display_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        return ""
    if name.lower().startswith("dr."):
        rest = name[3:].strip()
        return f"{DOCTOR_PREFIX}{rest}" if rest else ""
    return f"{DOCTOR_PREFIX}{name}"


# -------------------------
# Internal helpers
# -------------------------
def _stamp(record: RecordState, *, now: datetime, actor: Actor, **changes) -> RecordState:
    return replace(
        record,
        updated_at=now,
        updated_by_id=actor.user_id,
        updated_by_email=actor.email,
        **changes,
    )


def _require_enquiry(record: RecordState, action: str) -> None:
    if record.kind is not RecordKind.ENQUIRY:
        raise InvalidCommand(f"{action} is not supported for {record.kind.value} records.")


def _require_actionable(record: RecordState, action: str) -> None:
    if record.status not in EnquiryStatus.ACTIONABLE:
        raise TransitionRejected(
            f"Cannot {action} a {record.status} enquiry.",
            code="not_actionable",
        )


def _status_effect(before: RecordState, after: RecordState) -> tuple[Effect, ...]:
    if before.status == after.status:
        return ()
    return (Effect("status_changed", {"from": before.status, "to": after.status}),)


# -------------------------
# Assignment
# -------------------------
def _assign_staff(record: RecordState, c: cmd.AssignStaff, now: datetime, actor: Actor) -> Outcome:
    staff_name = (c.staff_name or "").strip()
    if not staff_name:
        raise InvalidCommand("Staff name is required.")

    if record.kind is RecordKind.VISIT:
        # Visits: "attended by", status untouched
        new = _stamp(record, now=now, actor=actor, assigned_staff=staff_name, assigned_staff_at=now)
        return Outcome(new, (Effect("staff_assigned", {"staff_name": staff_name}),))

    _require_actionable(record, "assign staff to")
    new = _stamp(
        record,
        now=now,
        actor=actor,
        assigned_staff=staff_name,
        assigned_staff_at=now,
        status=EnquiryStatus.IN_PROGRESS,
    )
    effects = (Effect("staff_assigned", {"staff_name": staff_name}),) + _status_effect(record, new)
    return Outcome(new, effects)


def _assign_doctor(record: RecordState, c: cmd.AssignDoctor, now: datetime, actor: Actor) -> Outcome:
    doctor_name = doctor_display_name(c.doctor_name)
    if not doctor_name:
        raise InvalidCommand("Doctor name is required.")

    if record.kind is RecordKind.ENQUIRY:
        _require_actionable(record, "assign a doctor to")

    new = _stamp(record, now=now, actor=actor, assigned_doctor=doctor_name, assigned_doctor_at=now)
    return Outcome(new, (Effect("doctor_assigned", {"doctor_name": doctor_name}),))


# -------------------------
# Workflow: pending -> in_progress -> completed, cancel
# -------------------------
def _mark_completed(record: RecordState, c: cmd.MarkCompleted, now: datetime, actor: Actor) -> Outcome:
    _require_enquiry(record, "Completing")
    _require_actionable(record, "complete")

    new = _stamp(record, now=now, actor=actor, status=EnquiryStatus.COMPLETED)
    return Outcome(new, _status_effect(record, new))


def _cancel(record: RecordState, c: cmd.Cancel, now: datetime, actor: Actor) -> Outcome:
    _require_enquiry(record, "Cancelling")

    # Idempotent no-op
    if record.status == EnquiryStatus.CANCELLED:
        return Outcome(record)

    _require_actionable(record, "cancel")

    new = _stamp(record, now=now, actor=actor, status=EnquiryStatus.CANCELLED)
    return Outcome(new, _status_effect(record, new))


# -------------------------
# Free-text fields
# -------------------------
def _edit_details(record: RecordState, c: cmd.EditDetails, now: datetime, actor: Actor) -> Outcome:
    text = c.text if c.text is not None else ""
    entry = HistoryEntry(text=text, at=now, author_name=actor.display_name, author_email=actor.email)

    # Append-only: identical text still produces a new entry.
    new = _stamp(record, now=now, actor=actor, details=text, history=record.history + (entry,))
    return Outcome(new, (Effect("details_edited", {"length": len(text), "history_size": len(new.history)}),))


def _save_doctor_remarks(record: RecordState, c: cmd.SaveDoctorRemarks, now: datetime, actor: Actor) -> Outcome:
    text = c.text if c.text is not None else ""
    new = _stamp(record, now=now, actor=actor, doc_remarks=text, doc_remarks_at=now)
    return Outcome(new, (Effect("doc_remarks_saved", {"length": len(text)}),))


# -------------------------
# Reminders
# -------------------------
def _set_reminder(record: RecordState, c: cmd.SetReminder, now: datetime, actor: Actor) -> Outcome:
    _require_enquiry(record, "Reminders")

    if c.hours not in REMINDER_DURATIONS_HOURS:
        allowed = ", ".join(str(h) for h in REMINDER_DURATIONS_HOURS)
        raise InvalidCommand(f"Reminder duration must be one of: {allowed} hours.")

    if record.reminder is not None:
        raise TransitionRejected("A reminder is already active for this enquiry.", code="reminder_active")

    reminder = Reminder(scheduled_at=now, duration_hours=c.hours, original_status=record.status)
    new = _stamp(record, now=now, actor=actor, reminder=reminder)
    return Outcome(
        new,
        (
            Effect(
                "reminder_set",
                {
                    "duration_hours": c.hours,
                    "original_status": record.status,
                    "expires_at": reminder.expires_at.isoformat(),
                },
            ),
        ),
    )


def _cancel_reminder(record: RecordState, c: cmd.CancelReminder, now: datetime, actor: Actor) -> Outcome:
    _require_enquiry(record, "Reminders")

    # Idempotent no-op
    if record.reminder is None:
        return Outcome(record)

    new = _stamp(record, now=now, actor=actor, reminder=None)
    return Outcome(new, (Effect("reminder_cancelled", {"duration_hours": record.reminder.duration_hours}),))


def _expire_reminder(record: RecordState, c: cmd.ExpireReminder, now: datetime, actor: Actor) -> Outcome:
    if record.kind is not RecordKind.ENQUIRY:
        return Outcome(record)

    reminder = record.reminder
    if reminder is None or not reminder.is_due(now):
        return Outcome(record)

    new = _stamp(
        record,
        now=now,
        actor=actor,
        status=EnquiryStatus.PENDING,
        pending_since=now,
        reminder=None,
        last_notification_shown=None,
        reminder_expired_at=now,
    )
    effects = (
        Effect(
            "reminder_expired",
            {
                "duration_hours": reminder.duration_hours,
                "original_status": reminder.original_status,
                "expires_at": reminder.expires_at.isoformat(),
            },
        ),
    ) + _status_effect(record, new)
    return Outcome(new, effects)


def _record_notification_shown(
    record: RecordState, c: cmd.RecordNotificationShown, now: datetime, actor: Actor
) -> Outcome:
    new = _stamp(record, now=now, actor=actor, last_notification_shown=now)
    return Outcome(new, (Effect("notification_shown", {}),))


_HANDLERS: Dict[type, Callable[..., Outcome]] = {
    cmd.AssignStaff: _assign_staff,
    cmd.AssignDoctor: _assign_doctor,
    cmd.MarkCompleted: _mark_completed,
    cmd.Cancel: _cancel,
    cmd.EditDetails: _edit_details,
    cmd.SaveDoctorRemarks: _save_doctor_remarks,
    cmd.SetReminder: _set_reminder,
    cmd.CancelReminder: _cancel_reminder,
    cmd.ExpireReminder: _expire_reminder,
    cmd.RecordNotificationShown: _record_notification_shown,
}


def apply(record: RecordState, command: Any, *, now: datetime, actor: Actor) -> Outcome:
    """
    Apply one command to a record.

    Raises InvalidCommand / TransitionRejected without producing a new record;
    otherwise returns the new record plus the effects that describe the change.
    An Outcome with no effects means "nothing to write".
    """
    handler = _HANDLERS.get(type(command))
    if handler is None:
        raise InvalidCommand(f"Unknown command: {type(command).__name__}")
    return handler(record, command, now, actor)
