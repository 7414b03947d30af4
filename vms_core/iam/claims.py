# vms_core/iam/claims.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Set

from vms_core.lifecycle.records import Actor

ROLE_SUPER_ADMIN = "super_admin"
ROLE_BRANCH_ADMIN = "branch_admin"
ROLE_STAFF = "staff"
ROLE_READONLY = "readonly"


@dataclass(frozen=True)
class Claims:
    role: str
    branch_code: Optional[str] = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN


def _profile(user):
    profile = getattr(user, "vms_profile", None)
    if profile is None or not profile.is_active:
        return None
    return profile


def claims_for_user(user) -> Optional[Claims]:
    """
    Resolve role + branch claims:
    1) superuser -> super_admin (no branch restriction)
    2) active UserProfile -> its role/branch
    3) any other authenticated user -> readonly
    """
    if not user or not getattr(user, "is_authenticated", False):
        return None

    if getattr(user, "is_superuser", False):
        return Claims(role=ROLE_SUPER_ADMIN)

    # Missing reverse one-to-one raises a subclass of AttributeError, so getattr() covers it.
    profile = _profile(user)
    if profile is None:
        return Claims(role=ROLE_READONLY)

    return Claims(role=profile.role, branch_code=profile.branch_code or None)


def user_roles(user) -> Set[str]:
    claims = claims_for_user(user)
    return {claims.role} if claims else set()


def branch_scope_for(user) -> Optional[str]:
    """
    Branch that list queries are limited to, or None for "all branches".
    """
    claims = claims_for_user(user)
    if claims is None or claims.is_super_admin:
        return None
    return claims.branch_code


def display_name_for(user) -> str:
    """
    Full name, else the e-mail local part, else the username, else "Unknown".
    """
    if user is None:
        return "Unknown"

    full_name = ""
    if hasattr(user, "get_full_name"):
        full_name = (user.get_full_name() or "").strip()
    if full_name:
        return full_name

    email = (getattr(user, "email", "") or "").strip()
    if email:
        local = email.split("@", 1)[0]
        if local:
            return local

    username = (getattr(user, "username", "") or "").strip()
    return username or "Unknown"


def actor_for_user(user) -> Actor:
    if user is None or not getattr(user, "is_authenticated", False):
        return Actor(user_id=None, display_name="Unknown", email="")
    return Actor(
        user_id=user.pk,
        display_name=display_name_for(user),
        email=(getattr(user, "email", "") or "").strip(),
    )
