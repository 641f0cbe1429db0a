"""
Authorization guard.

A closed set of pure predicates over the current profile. Call sites
never compare role strings themselves; they ask one of these.

Route gates return a three-state Decision:
  - PENDING: profile still resolving, neither allow nor deny
  - ALLOWED
  - DENIED: terminal for this evaluation; re-evaluate on the next
    profile change, no retry here
"""

from enum import Enum

from app.models.profile import Profile

HOME_ROUTE = "/"


class Decision(str, Enum):
    PENDING = "pending"
    ALLOWED = "allowed"
    DENIED = "denied"


class Action(str, Enum):
    UPLOAD_NOTE = "upload_note"
    DELETE_NOTE = "delete_note"
    EDIT_ROLE = "edit_role"
    MANAGE_USERS = "manage_users"


def is_admin(profile: Profile | None) -> bool:
    return profile is not None and profile.role == "admin"


def can_access_protected(profile: Profile | None, loading: bool) -> Decision:
    if loading:
        return Decision.PENDING
    return Decision.ALLOWED if profile is not None else Decision.DENIED


def can_access_admin(profile: Profile | None, loading: bool) -> Decision:
    """Denied callers are sent back to HOME_ROUTE."""
    if loading:
        return Decision.PENDING
    return Decision.ALLOWED if is_admin(profile) else Decision.DENIED


def can_upload(profile: Profile | None) -> bool:
    """Faculty with at least one taught subject."""
    return profile is not None and profile.role == "faculty" and bool(profile.subjects)


def can_manage_users(profile: Profile | None) -> bool:
    return is_admin(profile)


def can_manage_notes(profile: Profile | None) -> bool:
    return is_admin(profile)


_ACTION_CHECKS = {
    Action.UPLOAD_NOTE: can_upload,
    Action.DELETE_NOTE: can_manage_notes,
    Action.EDIT_ROLE: can_manage_users,
    Action.MANAGE_USERS: can_manage_users,
}


def is_permitted(profile: Profile | None, action: Action) -> bool:
    return _ACTION_CHECKS[action](profile)
