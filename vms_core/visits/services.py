# vms_core/visits/services.py

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
from vms_core.lifecycle import commands as cmd
from vms_core.lifecycle.engine import Outcome
from vms_core.lifecycle.records import Actor
from vms_core.visits.models import Visit, VisitStatus

logger = logging.getLogger(__name__)


class VisitService:
    """
    Visit write-model operations.

    Check-in/out are plain timestamp updates owned here; attendance,
    doctor assignment, details and remarks go through the lifecycle engine
    exactly like enquiries.
    """

    EDITABLE_FIELDS = {"visitor_name", "visitor_mobile", "patient_name", "branch_code"}

    # -------------------------
    # Internal helpers
    # -------------------------
    @staticmethod
    def _get_locked(visit_id: UUID) -> Visit:
        return Visit.objects.select_for_update().get(id=visit_id)

    @staticmethod
    def _run(*, visit_id: UUID, command: Any, actor: Actor, now: Optional[datetime]) -> tuple[Visit, Outcome]:
        visit = VisitService._get_locked(visit_id)
        outcome = RecordStore.apply(instance=visit, command=command, actor=actor, now=now)
        return visit, outcome

    @staticmethod
    def _touch(visit: Visit, *, actor: Actor, now: datetime) -> list[str]:
        visit.updated_at = now
        visit.updated_by_id = actor.user_id
        visit.updated_by_email = actor.email
        return ["updated_at", "updated_by", "updated_by_email"]

    # -------------------------
    # Create / edit / delete
    # -------------------------
    @staticmethod
    @transaction.atomic
    def create_visit(
        *,
        actor: Actor,
        visitor_name: str,
        visitor_mobile: str,
        patient_name: str = "",
        details: str = "",
        branch_code: str = "",
        now: Optional[datetime] = None,
    ) -> Visit:
        visitor_name = (visitor_name or "").strip()
        visitor_mobile = (visitor_mobile or "").strip()
        if not visitor_name:
            raise ValidationError("Visitor name is required.")
        if not visitor_mobile:
            raise ValidationError("Visitor mobile is required.")

        now = now or timezone.now()
        visit = Visit.objects.create(
            visitor_name=visitor_name,
            visitor_mobile=visitor_mobile,
            patient_name=(patient_name or "").strip(),
            details=details or "",
            branch_code=(branch_code or "").strip(),
            status=VisitStatus.CHECKED_IN,
            visit_date=now,
            check_in_time=now,
            created_at=now,
            updated_at=now,
            created_by_id=actor.user_id,
            created_by_email=actor.email,
            updated_by_id=actor.user_id,
            updated_by_email=actor.email,
        )

        AuditService.log(
            event_code="visit.created",
            entity_type="Visit",
            entity_id=visit.id,
            actor=actor,
            metadata={"branch_code": visit.branch_code},
            occurred_at=now,
        )
        logger.info("Visit %s checked in", visit.id)
        return visit

    @staticmethod
    @transaction.atomic
    def update_visit(*, visit_id: UUID, actor: Actor, data: dict, now: Optional[datetime] = None) -> Visit:
        visit = VisitService._get_locked(visit_id)

        updates = {k: (v or "").strip() for k, v in (data or {}).items() if k in VisitService.EDITABLE_FIELDS}
        for required in ("visitor_name", "visitor_mobile"):
            if required in updates and not updates[required]:
                raise ValidationError(f"{required} cannot be blank.")

        changed = [k for k, v in updates.items() if getattr(visit, k) != v]
        if not changed:
            return visit

        for k in changed:
            setattr(visit, k, updates[k])
        now = now or timezone.now()
        visit.save(update_fields=changed + VisitService._touch(visit, actor=actor, now=now))

        AuditService.log(
            event_code="visit.updated",
            entity_type="Visit",
            entity_id=visit.id,
            actor=actor,
            metadata={"updated_fields": sorted(changed)},
            occurred_at=now,
        )
        return visit

    @staticmethod
    @transaction.atomic
    def delete_visit(*, visit_id: UUID, actor: Actor) -> None:
        visit = VisitService._get_locked(visit_id)
        snapshot = {"status": visit.status, "visitor_name": visit.visitor_name, "patient_name": visit.patient_name}
        visit.delete()

        AuditService.log(
            event_code="visit.deleted",
            entity_type="Visit",
            entity_id=visit_id,
            actor=actor,
            metadata=snapshot,
        )
        logger.info("Visit %s deleted by %s", visit_id, actor.email or actor.display_name)

    # -------------------------
    # Check-in / check-out
    # -------------------------
    @staticmethod
    @transaction.atomic
    def check_out(*, visit_id: UUID, actor: Actor, now: Optional[datetime] = None) -> Visit:
        """
        Admin check-out. Stamps admin + legacy check-out times, and the
        visitor's own check-out if they left without recording it.
        Already checked out by an admin: no-op.
        """
        visit = VisitService._get_locked(visit_id)
        if visit.status == VisitStatus.CHECKED_OUT and visit.admin_check_out_time is not None:
            return visit

        now = now or timezone.now()
        visit.status = VisitStatus.CHECKED_OUT
        visit.admin_check_out_time = now
        visit.check_out_time = now
        fields = ["status", "admin_check_out_time", "check_out_time"]
        if visit.visitor_check_out_time is None:
            visit.visitor_check_out_time = now
            fields.append("visitor_check_out_time")

        visit.save(update_fields=fields + VisitService._touch(visit, actor=actor, now=now))

        AuditService.log(
            event_code="visit.checked_out",
            entity_type="Visit",
            entity_id=visit.id,
            actor=actor,
            metadata={"visitor_check_out_time": visit.visitor_check_out_time.isoformat()},
            occurred_at=now,
        )
        logger.info("Visit %s checked out", visit.id)
        return visit

    @staticmethod
    @transaction.atomic
    def check_in(*, visit_id: UUID, actor: Actor, now: Optional[datetime] = None) -> Visit:
        """
        Admin (re-)check-in. Clears the admin and legacy check-out times;
        status returns to checked_in only if the visitor has not checked
        themselves out.
        """
        visit = VisitService._get_locked(visit_id)

        now = now or timezone.now()
        from_status = visit.status
        visit.admin_check_in_time = now
        visit.admin_check_out_time = None
        visit.check_out_time = None
        fields = ["admin_check_in_time", "admin_check_out_time", "check_out_time"]
        if visit.visitor_check_out_time is None:
            visit.status = VisitStatus.CHECKED_IN
            fields.append("status")

        visit.save(update_fields=fields + VisitService._touch(visit, actor=actor, now=now))

        AuditService.log(
            event_code="visit.checked_in",
            entity_type="Visit",
            entity_id=visit.id,
            actor=actor,
            metadata={"from": from_status, "to": visit.status},
            occurred_at=now,
        )
        return visit

    # -------------------------
    # Lifecycle-backed operations
    # -------------------------
    @staticmethod
    @transaction.atomic
    def attend(*, visit_id: UUID, staff_name: str, actor: Actor, now: Optional[datetime] = None) -> Visit:
        visit, _ = VisitService._run(visit_id=visit_id, command=cmd.AssignStaff(staff_name), actor=actor, now=now)
        return visit

    @staticmethod
    @transaction.atomic
    def assign_doctor(*, visit_id: UUID, doctor_name: str, actor: Actor, now: Optional[datetime] = None) -> Visit:
        visit, _ = VisitService._run(visit_id=visit_id, command=cmd.AssignDoctor(doctor_name), actor=actor, now=now)
        return visit

    @staticmethod
    @transaction.atomic
    def edit_details(*, visit_id: UUID, text: str, actor: Actor, now: Optional[datetime] = None) -> Visit:
        visit, _ = VisitService._run(visit_id=visit_id, command=cmd.EditDetails(text), actor=actor, now=now)
        return visit

    @staticmethod
    @transaction.atomic
    def save_doc_remarks(*, visit_id: UUID, text: str, actor: Actor, now: Optional[datetime] = None) -> Visit:
        visit, _ = VisitService._run(visit_id=visit_id, command=cmd.SaveDoctorRemarks(text), actor=actor, now=now)
        return visit
