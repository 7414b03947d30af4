from datetime import timedelta

import pytest
from django.core.exceptions import ValidationError

from vms_core.audit.models import AuditEvent
from vms_core.lifecycle.errors import InvalidCommand
from vms_core.visits.models import Visit, VisitDetailEdit, VisitStatus
from vms_core.visits.services import VisitService

pytestmark = pytest.mark.django_db


def test_create_checks_in(visit, t0):
    assert visit.status == VisitStatus.CHECKED_IN
    assert visit.check_in_time == t0
    assert visit.visit_date == t0
    assert visit.check_out_time is None
    assert AuditEvent.objects.filter(event_code="visit.created", entity_id=visit.id).exists()


def test_create_requires_visitor(actor):
    with pytest.raises(ValidationError):
        VisitService.create_visit(actor=actor, visitor_name="", visitor_mobile="1")
    assert Visit.objects.count() == 0


def test_admin_check_out_stamps_all_times_once(visit, actor, t0):
    out_at = t0 + timedelta(hours=1)
    VisitService.check_out(visit_id=visit.id, actor=actor, now=out_at)
    VisitService.check_out(visit_id=visit.id, actor=actor, now=out_at + timedelta(minutes=5))

    visit.refresh_from_db()
    assert visit.status == VisitStatus.CHECKED_OUT
    assert visit.admin_check_out_time == out_at
    assert visit.check_out_time == out_at
    assert visit.visitor_check_out_time == out_at
    assert AuditEvent.objects.filter(event_code="visit.checked_out", entity_id=visit.id).count() == 1


def test_check_out_keeps_visitor_own_check_out(visit, actor, t0):
    Visit.objects.filter(id=visit.id).update(visitor_check_out_time=t0 + timedelta(minutes=30))

    VisitService.check_out(visit_id=visit.id, actor=actor, now=t0 + timedelta(hours=1))

    visit.refresh_from_db()
    assert visit.visitor_check_out_time == t0 + timedelta(minutes=30)
    assert visit.admin_check_out_time == t0 + timedelta(hours=1)


def test_re_check_in_after_visitor_left_keeps_checked_out(visit, actor, t0):
    VisitService.check_out(visit_id=visit.id, actor=actor, now=t0 + timedelta(hours=1))
    VisitService.check_in(visit_id=visit.id, actor=actor, now=t0 + timedelta(hours=2))

    visit.refresh_from_db()
    assert visit.admin_check_in_time == t0 + timedelta(hours=2)
    assert visit.admin_check_out_time is None
    assert visit.check_out_time is None
    # visitor already recorded leaving
    assert visit.status == VisitStatus.CHECKED_OUT


def test_check_in_sets_status_when_visitor_still_inside(visit, actor, t0):
    Visit.objects.filter(id=visit.id).update(status=VisitStatus.CHECKED_OUT)

    VisitService.check_in(visit_id=visit.id, actor=actor, now=t0 + timedelta(hours=2))

    visit.refresh_from_db()
    assert visit.status == VisitStatus.CHECKED_IN


def test_attend_and_doctor_do_not_change_status(visit, actor, t0):
    VisitService.attend(visit_id=visit.id, staff_name="Asha", actor=actor, now=t0)
    VisitService.assign_doctor(visit_id=visit.id, doctor_name="Mehta", actor=actor, now=t0)

    visit.refresh_from_db()
    assert visit.status == VisitStatus.CHECKED_IN
    assert visit.assigned_staff == "Asha"
    assert visit.assigned_doctor == "Dr. Mehta"
    assert AuditEvent.objects.filter(entity_type="Visit", event_code="visit.staff_assigned").count() == 1


def test_attend_requires_name(visit, actor):
    with pytest.raises(InvalidCommand):
        VisitService.attend(visit_id=visit.id, staff_name=" ", actor=actor)


def test_details_history_and_remarks(visit, actor, t0):
    VisitService.edit_details(visit_id=visit.id, text="BP check", actor=actor, now=t0)
    VisitService.edit_details(visit_id=visit.id, text="BP check", actor=actor, now=t0 + timedelta(minutes=1))
    VisitService.save_doc_remarks(visit_id=visit.id, text="Normal", actor=actor, now=t0)

    assert VisitDetailEdit.objects.filter(visit=visit).count() == 2
    visit.refresh_from_db()
    assert visit.doc_remarks == "Normal"


def test_update_and_delete(visit, actor):
    VisitService.update_visit(visit_id=visit.id, actor=actor, data={"branch_code": "BLR", "status": "checked_out"})
    visit.refresh_from_db()
    assert visit.branch_code == "BLR"
    assert visit.status == VisitStatus.CHECKED_IN

    VisitService.delete_visit(visit_id=visit.id, actor=actor)
    assert not Visit.objects.filter(id=visit.id).exists()
