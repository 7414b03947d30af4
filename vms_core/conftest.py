# vms_core/conftest.py
from datetime import datetime, timezone as dt_timezone

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from vms_core.iam.claims import actor_for_user
from vms_core.iam.models import Role, UserProfile

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=dt_timezone.utc)


def make_user(username: str, role: str | None = None, *, branch_code: str = "", superuser: bool = False, **extra):
    """
    role=None -> no profile (readonly claims).
    """
    User = get_user_model()
    if superuser:
        user = User.objects.create_superuser(username=username, password="pass123", email=f"{username}@clinic.test")
    else:
        user = User.objects.create_user(
            username=username,
            password="pass123",
            email=extra.pop("email", f"{username}@clinic.test"),
            **extra,
        )
    if role is not None:
        UserProfile.objects.create(user=user, role=role, branch_code=branch_code)
    return user


def client_for(user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def t0():
    return T0


@pytest.fixture
def super_admin(db):
    return make_user("root", superuser=True)


@pytest.fixture
def branch_admin(db):
    return make_user("manager", Role.BRANCH_ADMIN, branch_code="BLR")


@pytest.fixture
def user(db):
    """Front-desk staff member (default actor for most tests)."""
    return make_user("frontdesk", Role.STAFF, first_name="Meera", last_name="Rao")


@pytest.fixture
def readonly_user(db):
    return make_user("viewer")


@pytest.fixture
def actor(user):
    return actor_for_user(user)


@pytest.fixture
def api_client(user):
    return client_for(user)


@pytest.fixture
def admin_client(super_admin):
    return client_for(super_admin)


@pytest.fixture
def readonly_client(readonly_user):
    return client_for(readonly_user)


@pytest.fixture
def enquiry(actor, t0):
    from vms_core.enquiries.services import EnquiryService

    return EnquiryService.create_enquiry(
        actor=actor,
        enquirer_name="Ravi Kumar",
        enquirer_mobile="9876543210",
        patient_name="Lakshmi",
        now=t0,
    )


@pytest.fixture
def visit(actor, t0):
    from vms_core.visits.services import VisitService

    return VisitService.create_visit(
        actor=actor,
        visitor_name="Suresh",
        visitor_mobile="9000000001",
        patient_name="Anand",
        now=t0,
    )


@pytest.fixture
def device_headers():
    return {"HTTP_X_DEVICE_ID": "front-desk-tablet-1"}


@pytest.fixture
def other_device_headers():
    return {"HTTP_X_DEVICE_ID": "doctor-room-pc"}
