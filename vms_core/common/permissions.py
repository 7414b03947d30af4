# vms_core/common/permissions.py
from __future__ import annotations

from rest_framework.permissions import SAFE_METHODS, BasePermission

from vms_core.iam.claims import (
    ROLE_BRANCH_ADMIN,
    ROLE_READONLY,
    ROLE_STAFF,
    ROLE_SUPER_ADMIN,
    user_roles,
)

ALL_ROLES = {ROLE_SUPER_ADMIN, ROLE_BRANCH_ADMIN, ROLE_STAFF, ROLE_READONLY}
WRITERS = {ROLE_SUPER_ADMIN, ROLE_BRANCH_ADMIN, ROLE_STAFF}
ADMINS = {ROLE_SUPER_ADMIN, ROLE_BRANCH_ADMIN}


class BaseRolePermission(BasePermission):
    """
    Role-based access control keyed by ViewSet action.

    - Requires authentication.
    - super_admin bypass.
    - Unknown SAFE actions fall back to list/retrieve; unknown writes are denied.
    """
    message = "You do not have permission to perform this action."

    # Override in subclasses: action -> allowed roles
    allowed_roles_per_action: dict[str, set[str]] = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "create": ADMINS,
        "update": ADMINS,
        "partial_update": ADMINS,
        "destroy": ADMINS,
    }

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "action", None)
        if action:
            return action

        kwargs = getattr(view, "kwargs", {}) or {}
        is_detail = "pk" in kwargs or "id" in kwargs

        method = request.method.upper()
        if method in ("GET", "HEAD", "OPTIONS"):
            return "retrieve" if is_detail else "list"
        if method == "POST":
            return "create"
        if method == "PUT":
            return "update"
        if method == "PATCH":
            return "partial_update"
        if method == "DELETE":
            return "destroy"
        return None

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        roles = user_roles(user)
        if ROLE_SUPER_ADMIN in roles:
            return True

        action = self._infer_action(request, view)
        allowed = self.allowed_roles_per_action.get(action)

        if allowed is None and request.method in SAFE_METHODS:
            kwargs = getattr(view, "kwargs", {}) or {}
            read_action = "retrieve" if ("pk" in kwargs or "id" in kwargs) else "list"
            allowed = self.allowed_roles_per_action.get(read_action)

        if allowed is not None:
            return bool(roles & allowed)

        return False

    def has_object_permission(self, request, view, obj) -> bool:
        return self.has_permission(request, view)


class EnquiryPermission(BaseRolePermission):
    """Front desk + admins work enquiries; only admins delete them."""
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "history": ALL_ROLES,
        "timeline": ALL_ROLES,
        "pending_alerts": ALL_ROLES,
        "pending": ALL_ROLES,
        "alert_check": ALL_ROLES,
        "create": WRITERS,
        "partial_update": WRITERS,
        "assign_staff": WRITERS,
        "assign_doctor": WRITERS,
        "complete": WRITERS,
        "cancel": WRITERS,
        "details": WRITERS,
        "doc_remarks": WRITERS,
        "reminder": WRITERS,
        "cancel_reminder": WRITERS,
        "destroy": ADMINS,
    }


class VisitPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "history": ALL_ROLES,
        "create": WRITERS,
        "partial_update": WRITERS,
        "check_in": WRITERS,
        "check_out": WRITERS,
        "attend": WRITERS,
        "assign_doctor": WRITERS,
        "details": WRITERS,
        "doc_remarks": WRITERS,
        "destroy": ADMINS,
    }


class DirectoryPermission(BaseRolePermission):
    """Everyone reads the directory; admins maintain it."""
    pass


class AnalyticsPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": ADMINS | {ROLE_STAFF},
    }


class AuditPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": ADMINS,
        "retrieve": ADMINS,
    }
