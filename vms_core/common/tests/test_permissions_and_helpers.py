import pytest
from rest_framework.test import APIRequestFactory, force_authenticate
from rest_framework.views import APIView

from vms_core.common.openapi import device_id_from_request
from vms_core.common.permissions import ADMINS, ALL_ROLES, BaseRolePermission
from vms_core.common.spectacular_hooks import preprocess_exclude_legacy_api
from vms_core.common.timeutils import parse_date_param
from vms_core.conftest import make_user
from vms_core.iam.models import Role

factory = APIRequestFactory()


class _Perm(BaseRolePermission):
    allowed_roles_per_action = {"list": ALL_ROLES, "create": ADMINS}


class _View(APIView):
    kwargs = {}


def _request(method, user):
    request = getattr(factory, method)("/x/")
    request.user = user
    return request


@pytest.mark.django_db
def test_action_inferred_from_method():
    staff = make_user("s1", Role.STAFF)
    view = _View()

    assert _Perm().has_permission(_request("get", staff), view) is True
    assert _Perm().has_permission(_request("post", staff), view) is False
    # unknown write action is denied
    assert _Perm().has_permission(_request("delete", staff), view) is False


@pytest.mark.django_db
def test_super_admin_bypasses_action_map():
    root = make_user("r1", superuser=True)
    assert _Perm().has_permission(_request("delete", root), _View()) is True


@pytest.mark.django_db
def test_inactive_profile_falls_back_to_readonly():
    staff = make_user("s2", Role.STAFF)
    staff.vms_profile.is_active = False
    staff.vms_profile.save()
    staff.refresh_from_db()

    assert _Perm().has_permission(_request("get", staff), _View()) is True
    assert _Perm().has_permission(_request("post", staff), _View()) is False


def test_device_id_prefers_header():
    request = factory.post("/x/", HTTP_X_DEVICE_ID="  tablet-7 ")
    assert device_id_from_request(APIView().initialize_request(request)) == "tablet-7"


@pytest.mark.django_db
def test_device_id_falls_back_to_user():
    user = make_user("d1", Role.STAFF)
    request = factory.post("/x/")
    force_authenticate(request, user=user)
    drf_request = APIView().initialize_request(request)

    assert device_id_from_request(drf_request) == f"user:{user.pk}"


def test_legacy_alias_removed_from_schema():
    endpoints = [
        ("/api/v1/visits/", None, "GET", None),
        ("/api/visits/", None, "GET", None),
        ("/api/schema/", None, "GET", None),
    ]
    assert [e[0] for e in preprocess_exclude_legacy_api(endpoints)] == ["/api/v1/visits/"]


def test_parse_date_param():
    assert parse_date_param(None, "date") is None
    assert str(parse_date_param(" 2024-05-01 ", "date")) == "2024-05-01"
    with pytest.raises(ValueError, match="date is invalid"):
        parse_date_param("01/05/2024", "date")
