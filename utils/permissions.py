# utils/permissions.py
from enum import Enum


class PermissionDenied(Exception):
    """Raised when an actor attempts a mutation its role does not allow."""


class Role(str, Enum):
    ADMIN = "admin"
    PROJECT_MANAGER = "project_manager"
    EMPLOYEE = "employee"

    @classmethod
    def parse(cls, value) -> "Role":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown role: {value!r}") from None

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"

    @classmethod
    def parse(cls, value) -> "UserStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown status: {value!r}") from None


ROLE_WEIGHTS = {Role.ADMIN: 3, Role.PROJECT_MANAGER: 2, Role.EMPLOYEE: 1}


def _role(subject) -> Role:
    # accepts a Role, a role string, or anything with a `.role`
    if isinstance(subject, (Role, str)):
        return Role.parse(subject)
    return Role.parse(getattr(subject, "role"))


def role_weight(role) -> int:
    try:
        return ROLE_WEIGHTS[Role.parse(role)]
    except ValueError:
        return 0


def is_admin(actor) -> bool:
    return _role(actor) is Role.ADMIN


def is_project_manager(actor) -> bool:
    return _role(actor) is Role.PROJECT_MANAGER


def can_manage_users(actor) -> bool:
    return is_admin(actor) or is_project_manager(actor)


def can_create_projects(actor) -> bool:
    return is_admin(actor) or is_project_manager(actor)


def can_manage_projects(actor) -> bool:
    return is_admin(actor) or is_project_manager(actor)


def can_delete_projects(actor) -> bool:
    return is_admin(actor)


def can_manage_phases(actor) -> bool:
    return is_admin(actor) or is_project_manager(actor)


def can_manage_tasks(actor, task_assigned_to=None) -> bool:
    """Admins and PMs manage any task; employees only the ones assigned to them."""
    if is_admin(actor) or is_project_manager(actor):
        return True
    return task_assigned_to is not None and task_assigned_to == getattr(actor, "id", None)


def can_view_analytics(actor) -> bool:
    return is_admin(actor) or is_project_manager(actor)


def assignable_roles(creator_role) -> list[Role]:
    if Role.parse(creator_role) is Role.ADMIN:
        return [Role.EMPLOYEE, Role.PROJECT_MANAGER, Role.ADMIN]
    return [Role.EMPLOYEE]


def can_create_user_with_role(creator_role, target_role) -> bool:
    creator, target = Role.parse(creator_role), Role.parse(target_role)
    if creator is Role.ADMIN:
        return True
    return creator is Role.PROJECT_MANAGER and target is Role.EMPLOYEE


def can_edit_user(actor, target) -> bool:
    """Admins edit anyone, everyone edits themselves, PMs edit employees' profiles.

    Role and status changes are admin-only on top of this (see ``db.update_user``).
    """
    if is_admin(actor) or getattr(actor, "id", None) == getattr(target, "id", None):
        return True
    return is_project_manager(actor) and _role(target) is Role.EMPLOYEE


def can_edit_notes(actor) -> bool:
    return is_project_manager(actor)


def can_view_notes(actor, user_id) -> bool:
    return is_admin(actor) or is_project_manager(actor) or getattr(actor, "id", None) == user_id


def can_view_user_details(actor, target) -> bool:
    """PMs cannot open another PM's or an admin's details page."""
    if getattr(actor, "id", None) == getattr(target, "id", None):
        return True
    if is_project_manager(actor):
        return _role(target) is Role.EMPLOYEE
    return True
