# vms_core/enquiries/services.py

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from vms_core.audit.services import AuditService
from vms_core.common.record_store import RecordStore
from vms_core.enquiries.models import Enquiry, EnquiryStatus
from vms_core.lifecycle import commands as cmd
from vms_core.lifecycle.engine import Outcome
from vms_core.lifecycle.records import SYSTEM_ACTOR, Actor

logger = logging.getLogger(__name__)


class EnquiryService:
    """
    Enquiry write-model operations.

    Notes:
    - Every lifecycle operation locks the row, runs the engine and persists
      the diff in one transaction; a rejected command writes nothing.
    - Lifecycle errors (InvalidCommand / TransitionRejected) propagate to the
      API layer unchanged.
    """

    EDITABLE_FIELDS = {"enquirer_name", "enquirer_mobile", "patient_name"}

    # -------------------------
    # Internal helpers
    # -------------------------
    @staticmethod
    def _get_locked(enquiry_id: UUID) -> Enquiry:
        return Enquiry.objects.select_for_update().get(id=enquiry_id)

    @staticmethod
    def _run(*, enquiry_id: UUID, command: Any, actor: Actor, now: Optional[datetime]) -> tuple[Enquiry, Outcome]:
        enquiry = EnquiryService._get_locked(enquiry_id)
        outcome = RecordStore.apply(instance=enquiry, command=command, actor=actor, now=now)
        return enquiry, outcome

    # -------------------------
    # Create / edit / delete
    # -------------------------
    @staticmethod
    @transaction.atomic
    def create_enquiry(
        *,
        actor: Actor,
        enquirer_name: str,
        enquirer_mobile: str,
        patient_name: str = "",
        details: str = "",
        status: str = EnquiryStatus.PENDING,
        created_by_email: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Enquiry:
        enquirer_name = (enquirer_name or "").strip()
        enquirer_mobile = (enquirer_mobile or "").strip()
        if not enquirer_name:
            raise ValidationError("Enquirer name is required.")
        if not enquirer_mobile:
            raise ValidationError("Enquirer mobile is required.")
        if status not in EnquiryStatus.values:
            raise ValidationError(f"Invalid status: {status}")

        now = now or timezone.now()
        if created_by_email is None:
            # Front desk records without a signed-in email keep the literal "None"
            created_by_email = actor.email or "None"

        enquiry = Enquiry.objects.create(
            enquirer_name=enquirer_name,
            enquirer_mobile=enquirer_mobile,
            patient_name=(patient_name or "").strip(),
            details=details or "",
            status=status,
            pending_since=now if status == EnquiryStatus.PENDING else None,
            created_at=now,
            updated_at=now,
            created_by_id=actor.user_id,
            created_by_email=created_by_email,
            updated_by_id=actor.user_id,
            updated_by_email=actor.email,
        )

        AuditService.log(
            event_code="enquiry.created",
            entity_type="Enquiry",
            entity_id=enquiry.id,
            actor=actor,
            metadata={"status": status},
            occurred_at=now,
        )
        logger.info("Enquiry %s created (status=%s)", enquiry.id, status)
        return enquiry

    @staticmethod
    @transaction.atomic
    def update_enquiry(
        *,
        enquiry_id: UUID,
        actor: Actor,
        data: dict,
        now: Optional[datetime] = None,
    ) -> Enquiry:
        """
        Direct edits of contact fields. Status, assignment, details and
        reminders only change through their lifecycle operations.
        """
        enquiry = EnquiryService._get_locked(enquiry_id)

        updates = {k: (v or "").strip() for k, v in (data or {}).items() if k in EnquiryService.EDITABLE_FIELDS}
        for required in ("enquirer_name", "enquirer_mobile"):
            if required in updates and not updates[required]:
                raise ValidationError(f"{required} cannot be blank.")

        changed = [k for k, v in updates.items() if getattr(enquiry, k) != v]
        if not changed:
            return enquiry

        for k in changed:
            setattr(enquiry, k, updates[k])

        enquiry.updated_at = now or timezone.now()
        enquiry.updated_by_id = actor.user_id
        enquiry.updated_by_email = actor.email
        enquiry.save(update_fields=changed + ["updated_at", "updated_by", "updated_by_email"])

        AuditService.log(
            event_code="enquiry.updated",
            entity_type="Enquiry",
            entity_id=enquiry.id,
            actor=actor,
            metadata={"updated_fields": sorted(changed)},
            occurred_at=enquiry.updated_at,
        )
        return enquiry

    @staticmethod
    @transaction.atomic
    def delete_enquiry(*, enquiry_id: UUID, actor: Actor) -> None:
        enquiry = EnquiryService._get_locked(enquiry_id)
        snapshot = {
            "status": enquiry.status,
            "enquirer_name": enquiry.enquirer_name,
            "patient_name": enquiry.patient_name,
        }
        enquiry.delete()

        AuditService.log(
            event_code="enquiry.deleted",
            entity_type="Enquiry",
            entity_id=enquiry_id,
            actor=actor,
            metadata=snapshot,
        )
        logger.info("Enquiry %s deleted by %s", enquiry_id, actor.email or actor.display_name)

    # -------------------------
    # Assignment
    # -------------------------
    @staticmethod
    @transaction.atomic
    def assign_staff(*, enquiry_id: UUID, staff_name: str, actor: Actor, now: Optional[datetime] = None) -> Enquiry:
        enquiry, _ = EnquiryService._run(
            enquiry_id=enquiry_id, command=cmd.AssignStaff(staff_name), actor=actor, now=now
        )
        return enquiry

    @staticmethod
    @transaction.atomic
    def assign_doctor(*, enquiry_id: UUID, doctor_name: str, actor: Actor, now: Optional[datetime] = None) -> Enquiry:
        enquiry, _ = EnquiryService._run(
            enquiry_id=enquiry_id, command=cmd.AssignDoctor(doctor_name), actor=actor, now=now
        )
        return enquiry

    # -------------------------
    # Workflow
    # pending -> in_progress -> completed, cancel
    # -------------------------
    @staticmethod
    @transaction.atomic
    def mark_completed(*, enquiry_id: UUID, actor: Actor, now: Optional[datetime] = None) -> Enquiry:
        enquiry, _ = EnquiryService._run(enquiry_id=enquiry_id, command=cmd.MarkCompleted(), actor=actor, now=now)
        return enquiry

    @staticmethod
    @transaction.atomic
    def cancel(*, enquiry_id: UUID, actor: Actor, now: Optional[datetime] = None) -> Enquiry:
        """
        pending/in_progress -> cancelled. Already cancelled: no-op. Completed: rejected.
        """
        enquiry, _ = EnquiryService._run(enquiry_id=enquiry_id, command=cmd.Cancel(), actor=actor, now=now)
        return enquiry

    # -------------------------
    # Free text
    # -------------------------
    @staticmethod
    @transaction.atomic
    def edit_details(*, enquiry_id: UUID, text: str, actor: Actor, now: Optional[datetime] = None) -> Enquiry:
        enquiry, _ = EnquiryService._run(enquiry_id=enquiry_id, command=cmd.EditDetails(text), actor=actor, now=now)
        return enquiry

    @staticmethod
    @transaction.atomic
    def save_doc_remarks(*, enquiry_id: UUID, text: str, actor: Actor, now: Optional[datetime] = None) -> Enquiry:
        enquiry, _ = EnquiryService._run(
            enquiry_id=enquiry_id, command=cmd.SaveDoctorRemarks(text), actor=actor, now=now
        )
        return enquiry

    # -------------------------
    # Reminders
    # -------------------------
    @staticmethod
    @transaction.atomic
    def set_reminder(*, enquiry_id: UUID, hours: int, actor: Actor, now: Optional[datetime] = None) -> Enquiry:
        enquiry, _ = EnquiryService._run(enquiry_id=enquiry_id, command=cmd.SetReminder(hours), actor=actor, now=now)
        return enquiry

    @staticmethod
    @transaction.atomic
    def cancel_reminder(*, enquiry_id: UUID, actor: Actor, now: Optional[datetime] = None) -> Enquiry:
        enquiry, _ = EnquiryService._run(enquiry_id=enquiry_id, command=cmd.CancelReminder(), actor=actor, now=now)
        return enquiry

    @staticmethod
    @transaction.atomic
    def expire_reminder(*, enquiry_id: UUID, actor: Actor = SYSTEM_ACTOR, now: Optional[datetime] = None) -> bool:
        """
        Expiry check for one enquiry. Returns True only for the call that
        actually reset the record; later or concurrent calls see no reminder and do nothing.
        """
        _, outcome = EnquiryService._run(enquiry_id=enquiry_id, command=cmd.ExpireReminder(), actor=actor, now=now)
        return outcome.changed

    @staticmethod
    @transaction.atomic
    def record_notification_shown(*, enquiry_id: UUID, actor: Actor, now: Optional[datetime] = None) -> Enquiry:
        enquiry, _ = EnquiryService._run(
            enquiry_id=enquiry_id, command=cmd.RecordNotificationShown(), actor=actor, now=now
        )
        return enquiry
