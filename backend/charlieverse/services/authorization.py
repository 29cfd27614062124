"""Single authorization policy consulted by every route and socket handler."""

from __future__ import annotations

from enum import Enum
from typing import Any

from charlieverse.models.project import Project
from charlieverse.models.user import Principal
from charlieverse.tools.exceptions import Forbidden, Unauthenticated


class Action(str, Enum):
    VIEW_OWN_ACCOUNT = "view_own_account"
    UPDATE_PROFILE = "update_profile"
    CREATE_PROJECT = "create_project"
    LIST_OWN_PROJECTS = "list_own_projects"
    VIEW_PROJECT = "view_project"
    UPLOAD_FILES = "upload_files"
    VIEW_FILES = "view_files"
    JOIN_USER_ROOM = "join_user_room"
    # Admin-only actions
    MANAGE_USERS = "manage_users"
    MANAGE_PROJECTS = "manage_projects"
    MANAGE_CONTACTS = "manage_contacts"
    VIEW_ANALYTICS = "view_analytics"
    MANAGE_EMAIL = "manage_email"
    SEND_NOTIFICATIONS = "send_notifications"
    JOIN_ADMIN_ROOM = "join_admin_room"


ADMIN_ACTIONS = frozenset(
    {
        Action.MANAGE_USERS,
        Action.MANAGE_PROJECTS,
        Action.MANAGE_CONTACTS,
        Action.VIEW_ANALYTICS,
        Action.MANAGE_EMAIL,
        Action.SEND_NOTIFICATIONS,
        Action.JOIN_ADMIN_ROOM,
    }
)


def is_allowed(principal: Principal | None, action: Action, resource: Any = None) -> bool:
    """Decide whether *principal* may perform *action* on *resource*.

    Admins may do everything. Other users may act on their own account,
    their own projects and their own socket room.
    """
    if principal is None:
        return False
    if principal.is_admin:
        return True
    if action in ADMIN_ACTIONS:
        return False
    if action == Action.VIEW_PROJECT:
        return isinstance(resource, Project) and resource.user_id == principal.user_id
    if action == Action.JOIN_USER_ROOM:
        return resource is not None and str(resource) == str(principal.user_id)
    return True


def authorize(principal: Principal | None, action: Action, resource: Any = None) -> Principal:
    """Return *principal* if allowed; raise ``Unauthenticated`` or ``Forbidden`` otherwise."""
    if principal is None:
        raise Unauthenticated()
    if not is_allowed(principal, action, resource):
        if action in ADMIN_ACTIONS:
            raise Forbidden("Admin access required")
        raise Forbidden()
    return principal
